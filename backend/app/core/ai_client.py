# backend/app/core/ai_client.py

import logging
from typing import Any, Callable, Dict, Optional

import litellm
from PyPDF2.errors import PdfReadError

from backend.app.config import Settings, settings as default_settings
from backend.app.core.pdf_parser import PDFParser
from backend.app.core.prompts import SYSTEM_PROMPT
from backend.app.core.storage import FileStorage

logger = logging.getLogger(__name__)


class FeedbackAIClient:
    """
    Chat collaborator: sends a stored resume plus instructions to the model.

    `feedback()` returns `{"message": {"content": ...}}` or None when the
    model gave nothing back.
    """

    def __init__(
        self,
        storage: FileStorage,
        cfg: Optional[Settings] = None,
        completion: Optional[Callable[..., Any]] = None,
        parser: Optional[PDFParser] = None,
    ):
        self.storage = storage
        self.cfg = cfg or default_settings
        self._completion = completion or litellm.completion
        self._parser = parser or PDFParser()

    def _resume_text(self, file_path: str) -> Optional[str]:
        try:
            data = self.storage.read(file_path)
            if data is None:
                logger.warning("Resume file %s not found in storage", file_path)
                return None
            return self._parser.extract_text(data)
        except (OSError, PdfReadError) as e:
            logger.warning("Could not read text from %s: %s", file_path, e)
            return None

    def feedback(self, file_path: str, instructions: str) -> Optional[Dict[str, Any]]:
        resume_text = self._resume_text(file_path)
        if resume_text is None:
            return None

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"{instructions}\n\nRESUME:\n{resume_text or '(no extractable text)'}"},
        ]
        logger.info("Requesting feedback model=%s file=%s", self.cfg.full_model_id(), file_path)
        try:
            resp = self._completion(
                model=self.cfg.full_model_id(),
                api_base=self.cfg.LLM_BASE_URL,
                api_key=self.cfg.LLM_API_KEY,
                timeout=self.cfg.LLM_REQUEST_TIMEOUT,
                temperature=self.cfg.LLM_TEMPERATURE,
                messages=messages,
            )
        except Exception:
            logger.exception("Feedback request failed for %s", file_path)
            return None

        content = _message_content(resp)
        if content is None:
            return None
        return {"message": {"role": "assistant", "content": content}}


def _message_content(resp: Any) -> Any:
    """First choice's content from a LiteLLM / OpenAI-style response."""
    if resp is None:
        return None
    choices = resp.get("choices") if isinstance(resp, dict) else getattr(resp, "choices", None)
    if not choices:
        return None
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else getattr(first, "message", None)
    if message is None:
        return None
    return message.get("content") if isinstance(message, dict) else getattr(message, "content", None)
