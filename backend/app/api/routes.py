#backend/app/api/routes.py

from typing import Optional, Dict, Any, List
import logging
import uuid
from fastapi import APIRouter, Depends, File, Form, UploadFile, Query, HTTPException
from fastapi.responses import FileResponse, Response
from pydantic import ValidationError
from starlette import status

from backend.app.api.deps import (
    client_id,
    get_guard,
    get_kv,
    get_queue,
    get_settings,
    get_storage,
    require_auth,
)
from backend.app.config import Settings
from backend.app.core.artifacts import PDFRenderer, feedback_markdown
from backend.app.core.errors import JobInFlightError
from backend.app.core.feedback import load_feedback
from backend.app.core.feedback_viewer import wait_for_feedback
from backend.app.core.pdf_parser import looks_like_pdf
from backend.app.core.records import get_record, list_records
from backend.app.core.storage import FileStorage, KVStore
from backend.app.core.upload_pipeline import SubmissionGuard
from backend.app.models.job_models import (
    FeedbackWaitResponse,
    JobStatusResponse,
    JobSubmitResponse,
    ResumeSummary,
    UploadJob,
)

import tempfile
import os
import json

logger = logging.getLogger(__name__)

api_router = APIRouter()
resume_router = APIRouter(dependencies=[Depends(require_auth)])
_pdf = PDFRenderer()

@api_router.get("/health", tags=["Health"])
def health_check():
    return {"status": "ok"}

@api_router.post("/warmup", tags=["Health"])
def warmup(queue=Depends(get_queue)):
    """Enqueue a warmup call for the reviewer model."""
    return {"job_id": queue.send_warmup()}

# ---------------- Submission ----------------

@resume_router.post("/resumes", response_model=JobSubmitResponse, tags=["Resumes"])
async def submit_resume(
    file: UploadFile = File(...),
    company_name: str = Form(...),
    job_title: str = Form(...),
    job_description: str = Form(...),
    client: str = Depends(client_id),
    cfg: Settings = Depends(get_settings),
    guard: SubmissionGuard = Depends(get_guard),
    queue=Depends(get_queue),
):
    """Validate the upload and start the review pipeline on the worker."""
    content = await file.read()
    if len(content) > cfg.max_resume_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Resume too large. Max {cfg.MAX_RESUME_SIZE_MB}MB.",
        )
    if not looks_like_pdf(content):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file. Only PDF resumes are accepted.")

    try:
        job = UploadJob(
            company_name=company_name,
            job_title=job_title,
            job_description=job_description,
            filename=file.filename or "resume.pdf",
            source_file=content,
            id=str(uuid.uuid4()),
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=json.loads(e.json(include_url=False, include_input=False)))

    try:
        guard.acquire(client, job.id)
    except JobInFlightError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

    try:
        job_id = queue.submit_upload(job, client_id=client)
    except Exception:
        guard.release(client, job.id)
        raise
    logger.info("Submitted resume %s as job %s", job.id, job_id)
    return JobSubmitResponse(job_id=job_id, resume_id=job.id)

@resume_router.get("/jobs/{job_id}", response_model=JobStatusResponse, tags=["Jobs"])
def job_status(job_id: str, queue=Depends(get_queue)):
    return JobStatusResponse(**queue.get_status(job_id))

# ---------------- Read side ----------------

@resume_router.get("/resumes", response_model=List[ResumeSummary], tags=["Resumes"])
def list_resumes(kv: KVStore = Depends(get_kv)):
    summaries = []
    for record in list_records(kv):
        if not record.get("id"):
            continue
        feedback = load_feedback(record.get("feedback"))
        summaries.append(ResumeSummary(
            id=record["id"],
            companyName=record.get("companyName"),
            jobTitle=record.get("jobTitle"),
            overallScore=feedback.overallScore if feedback else None,
        ))
    return summaries

@resume_router.get("/resumes/{resume_id}", tags=["Resumes"])
def get_resume(resume_id: str, kv: KVStore = Depends(get_kv)) -> Dict[str, Any]:
    return _record_or_404(kv, resume_id)

@resume_router.get("/resumes/{resume_id}/wait", response_model=FeedbackWaitResponse, tags=["Resumes"])
def wait_resume_feedback(
    resume_id: str,
    timeout: Optional[float] = Query(default=None, ge=0.0, description="Seconds to wait for feedback"),
    kv: KVStore = Depends(get_kv),
    cfg: Settings = Depends(get_settings),
):
    """
    Blocks until the feedback is stored or the wait runs out.
    state: READY | NOT_FOUND | TIMED_OUT
    """
    wait_seconds = cfg.FEEDBACK_WAIT_SECONDS if timeout is None else timeout
    viewer = wait_for_feedback(kv, resume_id, wait_seconds=wait_seconds, poll_interval=cfg.FEEDBACK_POLL_INTERVAL)
    return FeedbackWaitResponse(
        resume_id=resume_id,
        state=viewer.state,
        message=viewer.message,
        feedback=viewer.feedback,
    )

@resume_router.get("/resumes/{resume_id}/file", tags=["Resumes"])
def resume_file(resume_id: str, kv: KVStore = Depends(get_kv), storage: FileStorage = Depends(get_storage)):
    record = _record_or_404(kv, resume_id)
    return _blob_response(storage, record.get("resumeFile"), "application/pdf", "Resume file not found")

@resume_router.get("/resumes/{resume_id}/image", tags=["Resumes"])
def resume_image(resume_id: str, kv: KVStore = Depends(get_kv), storage: FileStorage = Depends(get_storage)):
    record = _record_or_404(kv, resume_id)
    return _blob_response(storage, record.get("resumeImage"), "image/png", "Resume image not found")

# ---------------- Downloadable Artifacts ----------------

@resume_router.get("/resumes/{resume_id}/download", tags=["Resumes"])
def download_feedback(
    resume_id: str,
    format: str = Query("md", pattern="^(md|json|pdf)$", description="Download format: md, json, or pdf"),
    kv: KVStore = Depends(get_kv),
):
    """Download the feedback report as Markdown (md), JSON (json) or PDF (pdf)."""
    record = _record_or_404(kv, resume_id)
    feedback = load_feedback(record.get("feedback"))
    if feedback is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Feedback not available yet")

    if format == "json":
        payload = dict(record, feedback=feedback.model_dump())
        return _download_json(payload, f"resume_review_{resume_id}.json")
    if format == "pdf":
        tmp_path = _tmp_path(f"resume_review_{resume_id}.pdf")
        _pdf.build_feedback_pdf(tmp_path, record, feedback)
        return FileResponse(tmp_path, media_type="application/pdf", filename=os.path.basename(tmp_path))
    return _download_md(feedback_markdown(record, feedback), f"resume_review_{resume_id}.md")

# ---------------- Helpers ----------------

def _record_or_404(kv: KVStore, resume_id: str) -> Dict[str, Any]:
    record = get_record(kv, resume_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resume not found")
    return record

def _blob_response(storage: FileStorage, path: Optional[str], media_type: str, missing: str) -> Response:
    data = storage.read(path) if path else None
    if data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=missing)
    return Response(content=data, media_type=media_type)

def _download_md(markdown_text: str, filename: str) -> FileResponse:
    tmp_path = _write_temp_file(markdown_text, filename)
    return FileResponse(tmp_path, media_type="text/markdown", filename=os.path.basename(tmp_path))

def _download_json(payload: Dict[str, Any], filename: str) -> FileResponse:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    tmp_path = _write_temp_file(text, filename)
    return FileResponse(tmp_path, media_type="application/json", filename=os.path.basename(tmp_path))

def _write_temp_file(content: str, filename: str) -> str:
    tmp_path = _tmp_path(filename)
    with open(tmp_path, "w", encoding="utf-8") as f:
        f.write(content)
    return tmp_path

def _tmp_path(filename: str) -> str:
    tmp_dir = tempfile.mkdtemp(prefix="artifacts_")
    return os.path.join(tmp_dir, filename)
