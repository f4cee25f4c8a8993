# backend/app/core/async_queue.py

from typing import Dict, Any, Optional
from celery.result import AsyncResult
from backend.app.core.tasks import encode_job, run_upload_job
from backend.app.models.job_models import UploadJob, UploadStage
from backend.worker.worker import celery_app

class AsyncJobQueueCelery:
    """Runs upload pipelines on the Celery worker and reports their progress."""

    def submit_upload(self, job: UploadJob, client_id: Optional[str] = None) -> str:
        async_result = run_upload_job.apply_async(
            args=[encode_job(job, client_id)],
            queue="llm",
            routing_key="llm",
        )
        return async_result.id

    def get_status(self, job_id: str) -> Dict[str, Any]:
        """
        Celery state plus the pipeline snapshot:
        PENDING/STARTED -> no snapshot yet, PROGRESS -> stage meta,
        SUCCESS -> final snapshot (DONE or FAILED), FAILURE -> worker crash.
        """
        result = AsyncResult(job_id, app=celery_app)
        state = result.state
        status: Dict[str, Any] = {"job_id": job_id, "state": state}

        if state in ("PROGRESS", "SUCCESS") and isinstance(result.info, dict):
            status.update(result.info)
        elif state == "FAILURE":
            status.update({
                "stage": UploadStage.FAILED.value,
                "status_message": "Failed to analyze resume. Please try again.",
                "error_kind": "worker",
            })
        return status

    def send_warmup(self) -> str:
        async_res = celery_app.send_task("warmup_llm", queue="llm", routing_key="llm")
        return async_res.id


# Singleton
queue = AsyncJobQueueCelery()
