#backend/app/models/job_models.py

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List, Union
from enum import Enum

from backend.app.models.feedback import Feedback

class UploadStage(str, Enum):
    IDLE = "IDLE"
    UPLOADING_FILE = "UPLOADING_FILE"
    CONVERTING_IMAGE = "CONVERTING_IMAGE"
    UPLOADING_IMAGE = "UPLOADING_IMAGE"
    PERSISTING = "PERSISTING"
    REQUESTING_FEEDBACK = "REQUESTING_FEEDBACK"
    DONE = "DONE"
    FAILED = "FAILED"

STAGE_ORDER: List[UploadStage] = [
    UploadStage.IDLE,
    UploadStage.UPLOADING_FILE,
    UploadStage.CONVERTING_IMAGE,
    UploadStage.UPLOADING_IMAGE,
    UploadStage.PERSISTING,
    UploadStage.REQUESTING_FEEDBACK,
    UploadStage.DONE,
]

TERMINAL_STAGES = {UploadStage.DONE, UploadStage.FAILED}

STAGE_MESSAGES: Dict[UploadStage, str] = {
    UploadStage.IDLE: "",
    UploadStage.UPLOADING_FILE: "Uploading the file...",
    UploadStage.CONVERTING_IMAGE: "Converting to image...",
    UploadStage.UPLOADING_IMAGE: "Uploading the image...",
    UploadStage.PERSISTING: "Preparing data...",
    UploadStage.REQUESTING_FEEDBACK: "Analyzing...",
    UploadStage.DONE: "Analysis complete! You can now view your feedback.",
}

class ViewState(str, Enum):
    LOADING = "LOADING"
    WAITING = "WAITING"
    READY = "READY"
    NOT_FOUND = "NOT_FOUND"
    TIMED_OUT = "TIMED_OUT"


class UploadJob(BaseModel):
    """One resume submission as it moves through the upload pipeline."""
    company_name: str
    job_title: str
    job_description: str
    filename: str
    source_file: bytes = Field(repr=False)
    id: Optional[str] = None
    stage: UploadStage = UploadStage.IDLE
    status_message: str = ""
    remote_file_path: Optional[str] = None
    remote_image_path: Optional[str] = None
    feedback: Optional[Feedback] = None
    error_kind: Optional[str] = None

    @field_validator("company_name", "job_title", "job_description", "filename")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("source_file")
    @classmethod
    def _has_content(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("source file is empty")
        return value

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def advance(self, stage: UploadStage) -> None:
        """Move forward to `stage`. Terminal jobs and backwards moves are rejected."""
        if self.is_terminal:
            raise ValueError(f"job already finished in stage {self.stage.value}")
        if STAGE_ORDER.index(stage) <= STAGE_ORDER.index(self.stage):
            raise ValueError(f"cannot move from {self.stage.value} to {stage.value}")
        self.stage = stage
        self.status_message = STAGE_MESSAGES[stage]

    def fail(self, kind: str, message: str) -> None:
        self.stage = UploadStage.FAILED
        self.error_kind = kind
        self.status_message = message

    def snapshot(self) -> Dict[str, Any]:
        """Progress view without the file payload."""
        return {
            "stage": self.stage.value,
            "status_message": self.status_message,
            "error_kind": self.error_kind,
            "resume_id": self.id,
        }


class ResumeRecord(BaseModel):
    """Record stored under `resume:{id}`."""
    id: str
    companyName: str
    jobTitle: str
    jobDescription: str
    resumeFile: str
    resumeImage: str
    feedback: Union[Dict[str, Any], str, None] = ""

# ---------- HTTP payloads ----------

class JobSubmitResponse(BaseModel):
    job_id: str
    resume_id: str

class JobStatusResponse(BaseModel):
    job_id: str
    state: str
    stage: UploadStage = UploadStage.IDLE
    status_message: str = ""
    resume_id: Optional[str] = None
    error_kind: Optional[str] = None

class FeedbackWaitResponse(BaseModel):
    resume_id: str
    state: ViewState
    message: str = ""
    feedback: Optional[Feedback] = None

class ResumeSummary(BaseModel):
    id: str
    companyName: Optional[str] = None
    jobTitle: Optional[str] = None
    overallScore: Optional[int] = None
