from types import SimpleNamespace

from backend.app.core.ai_client import FeedbackAIClient
from backend.app.core.storage import Blob, LocalFileStorage

from conftest import FEEDBACK_JSON


class FakeCompletion:
    def __init__(self, content=FEEDBACK_JSON, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


def test_feedback_sends_resume_text_and_instructions(settings, storage, pdf_bytes):
    stored = storage.upload([Blob("jane.pdf", pdf_bytes)])
    completion = FakeCompletion()
    client = FeedbackAIClient(storage, settings, completion=completion)

    response = client.feedback(stored.path, "The job title is: Engineer")

    assert response == {"message": {"role": "assistant", "content": FEEDBACK_JSON}}
    call = completion.calls[0]
    assert call["model"] == settings.full_model_id()
    system, user = call["messages"]
    assert system["role"] == "system"
    assert user["content"].startswith("The job title is: Engineer")
    assert "Jane Doe" in user["content"]


def test_dict_shaped_responses_are_understood(settings, storage, pdf_bytes):
    stored = storage.upload([Blob("jane.pdf", pdf_bytes)])
    client = FeedbackAIClient(
        storage, settings,
        completion=lambda **kw: {"choices": [{"message": {"content": "hello"}}]},
    )
    assert client.feedback(stored.path, "x")["message"]["content"] == "hello"


def test_model_errors_yield_no_response(settings, storage, pdf_bytes):
    stored = storage.upload([Blob("jane.pdf", pdf_bytes)])
    client = FeedbackAIClient(storage, settings, completion=FakeCompletion(error=TimeoutError("model timed out")))
    assert client.feedback(stored.path, "x") is None


def test_empty_choices_yield_no_response(settings, storage, pdf_bytes):
    stored = storage.upload([Blob("jane.pdf", pdf_bytes)])
    client = FeedbackAIClient(storage, settings, completion=lambda **kw: SimpleNamespace(choices=[]))
    assert client.feedback(stored.path, "x") is None


def test_missing_file_skips_the_model(settings, storage):
    completion = FakeCompletion()
    client = FeedbackAIClient(storage, settings, completion=completion)
    assert client.feedback("missing/jane.pdf", "x") is None
    assert completion.calls == []


def test_storage_errors_skip_the_model(settings, tmp_path):
    class BrokenStorage(LocalFileStorage):
        def read(self, path):
            raise OSError(5, "Input/output error")

    completion = FakeCompletion()
    client = FeedbackAIClient(BrokenStorage(str(tmp_path)), settings, completion=completion)
    assert client.feedback("a/jane.pdf", "x") is None
    assert completion.calls == []
