import json
from typing import Any, Dict, List, Optional

import fitz
import pytest

from backend.app.config import Settings
from backend.app.core.pdf_converter import ConversionResult
from backend.app.core.storage import Blob, KVUnavailable, LocalFileStorage, MemoryKVStore, StoredFile
from backend.app.models.job_models import UploadJob

FEEDBACK_JSON = (
    '{"overallScore":80,"ATS":{"score":70,"tips":[]},"toneAndStyle":{"score":90,"tips":[]},'
    '"content":{"score":75,"tips":[]},"structure":{"score":85,"tips":[]},"skills":{"score":60,"tips":[]}}'
)

RICH_FEEDBACK: Dict[str, Any] = {
    "overallScore": 64,
    "ATS": {"score": 55, "tips": [
        {"type": "good", "tip": "Standard section headings"},
        {"type": "improve", "tip": "Add keywords from the job description"},
    ]},
    "toneAndStyle": {"score": 72, "tips": [
        {"type": "good", "tip": "Active voice", "explanation": "Bullets start with strong verbs."},
    ]},
    "content": {"score": 58, "tips": [
        {"type": "improve", "tip": "Quantify results", "explanation": "Add numbers & impact <e.g. 30%>."},
    ]},
    "structure": {"score": 81, "tips": []},
    "skills": {"score": 35, "tips": [
        {"type": "improve", "tip": "Missing Kubernetes", "explanation": "The role asks for it twice."},
    ]},
}


def make_pdf(text: str = "Jane Doe\nSenior Python Developer") -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_bytes() -> bytes:
    return make_pdf()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        KV_BACKEND="memory",
        STORAGE_ROOT=str(tmp_path / "files"),
        PERSIST_FAILURE_POLICY="fatal",
        PERSIST_MAX_ATTEMPTS=3,
        SINGLE_FLIGHT_SUBMISSIONS=True,
        FEEDBACK_WAIT_SECONDS=0,
        FEEDBACK_POLL_INTERVAL=0,
        AUTH_TOKENS="",
    )


@pytest.fixture
def kv() -> MemoryKVStore:
    return RecordingKV()


@pytest.fixture
def storage(tmp_path) -> "CountingStorage":
    return CountingStorage(str(tmp_path / "files"))


@pytest.fixture
def job(pdf_bytes) -> UploadJob:
    return UploadJob(
        company_name="Acme",
        job_title="Backend Engineer",
        job_description="Python, FastAPI, Redis, Celery.",
        filename="jane.pdf",
        source_file=pdf_bytes,
    )


# ---------------- Collaborator doubles ----------------

class RecordingKV(MemoryKVStore):
    """Memory store that remembers every write and can fail the first N."""

    def __init__(self, fail_writes: int = 0):
        super().__init__()
        self.writes: List[tuple] = []
        self.fail_writes = fail_writes

    def set(self, key: str, value: str) -> None:
        if self.fail_writes > 0:
            self.fail_writes -= 1
            raise KVUnavailable(f"set {key!r} failed: connection refused")
        try:
            self.writes.append((key, json.loads(value)))
        except ValueError:
            self.writes.append((key, value))
        super().set(key, value)


class CountingStorage(LocalFileStorage):
    def __init__(self, root: str, fail_on_call: Optional[int] = None):
        super().__init__(root)
        self.uploads: List[str] = []
        self.fail_on_call = fail_on_call

    def upload(self, files: List[Blob]) -> Optional[StoredFile]:
        self.uploads.append(files[0].name)
        if self.fail_on_call == len(self.uploads):
            return None
        return super().upload(files)


class FakeConverter:
    def __init__(self, fail: bool = False):
        self.calls = 0
        self.fail = fail

    def __call__(self, blob: Blob) -> ConversionResult:
        self.calls += 1
        if self.fail:
            return ConversionResult(file=None, error="broken pdf")
        return ConversionResult(file=Blob("jane.png", b"\x89PNG\r\n\x1a\nfake", "image/png"))


class FakeAI:
    def __init__(self, response: Any = None, content: Any = FEEDBACK_JSON):
        self.calls: List[tuple] = []
        self.response = response if response is not None else {"message": {"content": content}}

    def feedback(self, file_path: str, instructions: str):
        self.calls.append((file_path, instructions))
        return self.response


class NoAI(FakeAI):
    def feedback(self, file_path: str, instructions: str):
        self.calls.append((file_path, instructions))
        return None
