from backend.app.core.artifacts import PDFRenderer, feedback_markdown
from backend.app.models.feedback import Feedback

from conftest import RICH_FEEDBACK

RECORD = {"id": "r1", "companyName": "Acme", "jobTitle": "Backend Engineer"}


def test_markdown_report():
    md = feedback_markdown(RECORD, Feedback.model_validate(RICH_FEEDBACK))

    assert md.startswith("# Resume Review: Backend Engineer @ Acme")
    assert "**64/100** (Good)" in md
    assert "- ✔ Standard section headings" in md
    assert "- ⚠ Add keywords from the job description" in md
    assert "## Structure (81/100)\n_No tips._" in md
    assert "**Quantify results**: Add numbers & impact <e.g. 30%>." in md


def test_markdown_title_without_job_context():
    feedback = Feedback.model_validate(RICH_FEEDBACK)
    assert feedback_markdown({}, feedback).startswith("# Resume Review\n")


def test_pdf_report_escapes_markup(tmp_path):
    path = tmp_path / "report.pdf"
    PDFRenderer().build_feedback_pdf(str(path), RECORD, Feedback.model_validate(RICH_FEEDBACK))
    assert path.read_bytes().startswith(b"%PDF")
