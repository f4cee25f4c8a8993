# backend/app/core/tasks.py

import base64
from typing import Any, Callable, Dict, Optional

from celery.utils.log import get_task_logger
from backend.worker.worker import celery_app
from backend.app.config import settings
from backend.app.core.ai_client import FeedbackAIClient
from backend.app.core.storage import build_file_storage, build_kv_store
from backend.app.core.upload_pipeline import SubmissionGuard, UploadPipeline
from backend.app.models.job_models import UploadJob
import litellm

logger = get_task_logger(__name__)


def encode_job(job: UploadJob, client_id: Optional[str] = None) -> Dict[str, Any]:
    """JSON-safe task payload (the resume bytes travel base64 encoded)."""
    payload = job.model_dump(mode="json", exclude={"source_file", "feedback"})
    payload["source_file_b64"] = base64.b64encode(job.source_file).decode("ascii")
    payload["client_id"] = client_id
    return payload

def decode_job(payload: Dict[str, Any]) -> UploadJob:
    data = dict(payload)
    data.pop("client_id", None)
    data["source_file"] = base64.b64decode(data.pop("source_file_b64"))
    return UploadJob(**data)

def build_pipeline(on_stage: Optional[Callable[[UploadJob], None]] = None) -> UploadPipeline:
    storage = build_file_storage(settings)
    return UploadPipeline(
        storage=storage,
        kv=build_kv_store(settings),
        ai=FeedbackAIClient(storage, settings),
        cfg=settings,
        on_stage=on_stage,
    )

def build_guard() -> SubmissionGuard:
    return SubmissionGuard.from_settings(build_kv_store(settings), settings)


@celery_app.task(
    name="run_upload_job",
    bind=True,
    # stages are single-attempt; a failed job is reported, not retried
    max_retries=0,
    soft_time_limit=settings.CELERY_SOFT_TIME_LIMIT,
    time_limit=settings.CELERY_HARD_TIME_LIMIT,
    acks_late=False,
)
def run_upload_job(self, payload: dict):
    job = decode_job(payload)
    logger.info("Starting upload job resume_id=%s file=%s", job.id, job.filename)

    def publish(current: UploadJob):
        if self.request.id:
            self.update_state(state="PROGRESS", meta=current.snapshot())

    try:
        job = build_pipeline(on_stage=publish).run(job)
    finally:
        build_guard().release(payload.get("client_id"), payload.get("id"))
    logger.info("Finished upload job resume_id=%s stage=%s", job.id, job.stage.value)
    return job.snapshot()


@celery_app.task(
    name="warmup_llm",
    bind=False,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_jitter=True,
    retry_kwargs={"max_retries": 0},
    soft_time_limit=180,
    time_limit=240,
)
def warmup_llm():
    """Pre-load the reviewer model via a tiny LiteLLM call."""
    model_id = settings.full_model_id()
    logger.info("Warming up LLM model_id=%s base_url=%s", model_id, settings.LLM_BASE_URL)

    resp = litellm.completion(
        model=model_id,
        api_base=settings.LLM_BASE_URL,
        api_key=settings.LLM_API_KEY,
        timeout=settings.LLM_REQUEST_TIMEOUT,
        messages=[{"role": "user", "content": settings.WARMUP_PROMPT}],
        temperature=0.0,
        max_tokens=16,
    )
    txt = resp.choices[0].message.content if resp.choices else ""
    logger.info("Warmup response (truncated): %s", (txt or "")[:120])
    return {"status": "ok", "model": model_id}
