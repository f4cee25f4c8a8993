# backend/app/core/artifacts.py

from typing import Dict, Any, List
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, ListFlowable
from reportlab.lib import colors
import datetime

from backend.app.core.feedback import badge_tier, score_tier
from backend.app.models.feedback import DETAIL_SECTIONS, Feedback

_TIER_COLORS = {"green": "#16a34a", "yellow": "#ca8a04", "red": "#dc2626"}


def _title_for(record: Dict[str, Any]) -> str:
    parts = [p for p in (record.get("jobTitle"), record.get("companyName")) if p]
    return "Resume Review" + (f": {' @ '.join(parts)}" if parts else "")


def _generated_at() -> str:
    return datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def _mark(tip_type: str) -> str:
    return "✔" if tip_type == "good" else "⚠"


def _label(tip_type: str) -> str:
    return "Good" if tip_type == "good" else "Improve"


def feedback_markdown(record: Dict[str, Any], feedback: Feedback) -> str:
    md = f"# {_title_for(record)}\n\n_Generated: {_generated_at()}_\n\n"
    md += f"## Overall Score\n**{feedback.overallScore}/100** ({score_tier(feedback.overallScore)})\n\n"

    md += f"## ATS Score\n**{feedback.ATS.score}/100**\n\n"
    md += "\n".join(f"- {_mark(t.type)} {t.tip}" for t in feedback.ATS.tips) or "_No tips._"
    md += "\n\n"

    for key, title in DETAIL_SECTIONS:
        section = getattr(feedback, key)
        md += f"## {title} ({section.score}/100)\n"
        if not section.tips:
            md += "_No tips._\n\n"
            continue
        for tip in section.tips:
            md += f"- {_mark(tip.type)} **{tip.tip}**: {tip.explanation}\n"
        md += "\n"
    return md


class PDFRenderer:
    """Render a feedback report as a PDF using ReportLab."""

    def __init__(self):
        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            name="TitleCentered",
            parent=styles["Title"],
            alignment=TA_CENTER,
            spaceAfter=12,
        )
        self.h2 = styles["Heading2"]
        self.h3 = styles["Heading3"]
        self.body = styles["BodyText"]
        self.small = ParagraphStyle(name="Small", parent=self.body, fontSize=9, textColor=colors.grey)

    # ---------- Public API ----------
    def build_feedback_pdf(self, path: str, record: Dict[str, Any], feedback: Feedback) -> None:
        doc = SimpleDocTemplate(
            path, pagesize=A4,
            topMargin=2 * cm, bottomMargin=2 * cm,
            leftMargin=2 * cm, rightMargin=2 * cm
        )
        flow: List = []
        flow += self._header(_title_for(record))

        flow.append(Paragraph("Overall Score", self.h2))
        flow.append(Paragraph(
            f"{self._score(feedback.overallScore)} - {self._escape_html(score_tier(feedback.overallScore))}",
            self.body,
        ))
        flow.append(Spacer(1, 0.3 * cm))

        flow.append(Paragraph(f"ATS Score {self._score(feedback.ATS.score)}", self.h2))
        flow += self._bullet_list([f"{_label(t.type)}: {t.tip}" for t in feedback.ATS.tips])
        flow.append(Spacer(1, 0.3 * cm))

        for key, title in DETAIL_SECTIONS:
            section = getattr(feedback, key)
            flow.append(Paragraph(f"{self._escape_html(title)} {self._score(section.score)}", self.h2))
            if not section.tips:
                flow.append(Paragraph("<i>No tips.</i>", self.body))
            for tip in section.tips:
                flow.append(Paragraph(f"{_label(tip.type)}: {self._escape_html(tip.tip)}", self.h3))
                flow.append(Paragraph(self._nl2br(self._escape_html(tip.explanation)), self.body))
            flow.append(Spacer(1, 0.3 * cm))

        doc.build(flow)

    # ---------- Section Builders ----------
    def _header(self, title: str) -> List:
        return [
            Paragraph(self._escape_html(title), self.title_style),
            Paragraph(f"Generated: {self._escape_html(_generated_at())}", self.small),
            Spacer(1, 0.5 * cm),
        ]

    def _bullet_list(self, items: List[str]) -> List:
        if not items:
            return [Paragraph("<i>None</i>", self.body)]
        paras = [Paragraph(self._escape_html(x), self.body) for x in items]
        return [ListFlowable(
            paras,
            bulletType="bullet",
            leftIndent=10,
            bulletColor=colors.black,
        )]

    @staticmethod
    def _score(score: int) -> str:
        color = _TIER_COLORS[badge_tier(score)]
        return f'<font color="{color}"><b>{score}/100</b></font>'

    # ---------- Inline helpers ----------
    @staticmethod
    def _nl2br(text: str) -> str:
        return text.replace("\n", "<br/>")

    @staticmethod
    def _escape_html(text: str) -> str:
        """Minimal XML escaping for ReportLab Paragraph."""
        return (
            text.replace("&", "&amp;")
                .replace("<", "&lt;")
                .replace(">", "&gt;")
        )
