# backend/app/core/upload_pipeline.py

import logging
import uuid
from enum import Enum
from typing import Callable, Optional

from backend.app.config import Settings, settings as default_settings
from backend.app.core.errors import (
    ConversionFailure,
    InferenceFailure,
    JobInFlightError,
    PersistFailure,
    ResumeReviewError,
    UploadFailure,
)
from backend.app.core.feedback import extract_response_text, parse_feedback
from backend.app.core.pdf_converter import ConversionResult, convert_pdf_to_image
from backend.app.core.prompts import prepare_instructions
from backend.app.core.records import resume_key
from backend.app.core.storage import Blob, FileStorage, KVStore, KVUnavailable
from backend.app.models.job_models import ResumeRecord, UploadJob, UploadStage

logger = logging.getLogger(__name__)

IMAGE_UPLOAD_FAILED = "Failed to upload image. Please try again."


class PersistPolicy(str, Enum):
    FATAL = "fatal"
    RETRY = "retry"


class UploadPipeline:
    """
    Drives one resume submission through its fixed stages:

        upload file -> convert to image -> upload image -> persist record
        -> request feedback -> persist feedback (DONE)

    Each stage is attempted once (the KV write may be retried, see
    PersistPolicy). The first failing stage marks the job FAILED with a
    user-facing message and nothing after it runs. `run()` never raises for
    stage failures.
    """

    def __init__(
        self,
        storage: FileStorage,
        kv: KVStore,
        ai,
        converter: Optional[Callable[[Blob], ConversionResult]] = None,
        cfg: Optional[Settings] = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        on_stage: Optional[Callable[[UploadJob], None]] = None,
    ):
        self.cfg = cfg or default_settings
        self.storage = storage
        self.kv = kv
        self.ai = ai
        self.converter = converter or (lambda blob: convert_pdf_to_image(blob, dpi=self.cfg.PDF_IMAGE_DPI))
        self.id_factory = id_factory
        self.on_stage = on_stage
        self.persist_policy = PersistPolicy(self.cfg.PERSIST_FAILURE_POLICY.lower())

    def run(self, job: UploadJob) -> UploadJob:
        if job.stage != UploadStage.IDLE:
            raise JobInFlightError(detail=f"job is already {job.stage.value}")

        steps = (
            (self._upload_file, UploadFailure),
            (self._convert_image, ConversionFailure),
            (self._upload_image, lambda detail: UploadFailure(IMAGE_UPLOAD_FAILED, detail=detail)),
            (self._persist, PersistFailure),
            (self._request_feedback, InferenceFailure),
            (self._finish, PersistFailure),
        )
        try:
            image = None
            for step, failure in steps:
                try:
                    image = step(job, image)
                except ResumeReviewError:
                    raise
                except Exception as e:
                    # collaborator blew up instead of reporting failure
                    logger.exception("Job %s: unexpected error at %s", job.id or "-", job.stage.value)
                    raise failure(detail=f"{type(e).__name__}: {e}") from e
        except ResumeReviewError as e:
            logger.warning("Job %s failed at %s: %s %s", job.id, job.stage.value, e.message, e.detail)
            job.fail(e.kind, e.message)
            self._notify(job)
        return job

    # ---------- Stages ----------

    def _upload_file(self, job: UploadJob, _) -> None:
        self._enter(job, UploadStage.UPLOADING_FILE)
        stored = self.storage.upload([Blob(job.filename, job.source_file, "application/pdf")])
        if not stored:
            raise UploadFailure()
        job.remote_file_path = stored.path

    def _convert_image(self, job: UploadJob, _) -> Blob:
        self._enter(job, UploadStage.CONVERTING_IMAGE)
        result = self.converter(Blob(job.filename, job.source_file, "application/pdf"))
        if not result or not result.file:
            raise ConversionFailure(detail=(result.error if result else "") or "")
        return result.file

    def _upload_image(self, job: UploadJob, image: Blob) -> None:
        self._enter(job, UploadStage.UPLOADING_IMAGE)
        stored = self.storage.upload([image])
        if not stored:
            raise UploadFailure(IMAGE_UPLOAD_FAILED)
        job.remote_image_path = stored.path

    def _persist(self, job: UploadJob, _) -> None:
        self._enter(job, UploadStage.PERSISTING)
        job.id = job.id or self.id_factory()
        self._write_record(job, feedback="")

    def _request_feedback(self, job: UploadJob, _) -> None:
        self._enter(job, UploadStage.REQUESTING_FEEDBACK)
        instructions = prepare_instructions(job.job_title, job.job_description, job.company_name)
        response = self.ai.feedback(job.remote_file_path, instructions)
        if not response:
            raise InferenceFailure()
        job.feedback = parse_feedback(extract_response_text(response))

    def _finish(self, job: UploadJob, _) -> None:
        self._write_record(job, feedback=job.feedback.model_dump())
        job.advance(UploadStage.DONE)
        logger.info("Job %s: %s", job.id, job.status_message)
        self._notify(job)

    # ---------- Helpers ----------

    def _enter(self, job: UploadJob, stage: UploadStage) -> None:
        job.advance(stage)
        logger.info("Job %s: %s", job.id or "-", job.status_message)
        self._notify(job)

    def _notify(self, job: UploadJob) -> None:
        """Progress reporting is best effort; it never changes the job outcome."""
        if not self.on_stage:
            return
        try:
            self.on_stage(job)
        except Exception:
            logger.exception("Job %s: progress callback failed at %s", job.id or "-", job.stage.value)

    def _write_record(self, job: UploadJob, feedback) -> None:
        record = ResumeRecord(
            id=job.id,
            companyName=job.company_name,
            jobTitle=job.job_title,
            jobDescription=job.job_description,
            resumeFile=job.remote_file_path,
            resumeImage=job.remote_image_path,
            feedback=feedback,
        )
        payload = record.model_dump_json()
        attempts = max(1, self.cfg.PERSIST_MAX_ATTEMPTS) if self.persist_policy == PersistPolicy.RETRY else 1
        last_error = None
        for attempt in range(1, attempts + 1):
            try:
                self.kv.set(resume_key(job.id), payload)
                return
            except KVUnavailable as e:
                last_error = e
                logger.warning("Job %s: KV write attempt %d/%d failed: %s", job.id, attempt, attempts, e)
        raise PersistFailure(detail=str(last_error))


class SubmissionGuard:
    """
    At most one in-flight job per client. Markers live in the KV store
    (`inflight:{client}`) so the API and the worker see the same state.
    """

    def __init__(self, kv: KVStore, enabled: bool = True, ttl: Optional[int] = None):
        self.kv = kv
        self.enabled = enabled
        self.ttl = ttl

    @classmethod
    def from_settings(cls, kv: KVStore, cfg: Settings) -> "SubmissionGuard":
        return cls(kv, enabled=cfg.SINGLE_FLIGHT_SUBMISSIONS, ttl=cfg.CELERY_HARD_TIME_LIMIT)

    @staticmethod
    def key(client_id: str) -> str:
        return f"inflight:{client_id}"

    def acquire(self, client_id: str, resume_id: str) -> None:
        if not self.enabled:
            return
        if not self.kv.set_if_absent(self.key(client_id), resume_id, ttl=self.ttl):
            raise JobInFlightError(detail=f"client {client_id} has job {self.kv.get(self.key(client_id))} in flight")

    def release(self, client_id: Optional[str], resume_id: Optional[str]) -> None:
        """Drop the marker only if it still belongs to `resume_id`."""
        if self.enabled and client_id and resume_id:
            self.kv.delete_if_equals(self.key(client_id), resume_id)
