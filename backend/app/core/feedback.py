# backend/app/core/feedback.py

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from backend.app.core.errors import ParseFailure
from backend.app.models.feedback import Feedback

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


def extract_response_text(response: Any) -> str:
    """
    Pull the text out of a chat response. `message.content` is either a plain
    string or a list whose first element carries the text.
    """
    message = _get(response, "message")
    content = _get(message, "content")
    if isinstance(content, list):
        first = content[0] if content else None
        content = first if isinstance(first, str) else _get(first, "text")
    if not isinstance(content, str) or not content.strip():
        raise ParseFailure(detail="AI response carried no text content")
    return content


def parse_feedback(text: str) -> Feedback:
    """Decode and validate the reviewer's JSON. Anything off-schema is a ParseFailure."""
    raw = text.strip()
    m = _FENCE_RE.match(raw)
    if m:
        raw = m.group(1)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseFailure(detail=f"invalid JSON: {e}") from e
    try:
        return Feedback.model_validate(data)
    except ValidationError as e:
        raise ParseFailure(detail=f"feedback does not match schema: {e.error_count()} error(s)") from e


def load_feedback(value: Any) -> Optional[Feedback]:
    """Read-side decode: empty, missing or unparsable means "no feedback yet"."""
    if not value:
        return None
    if isinstance(value, Feedback):
        return value
    try:
        if isinstance(value, str):
            return parse_feedback(value)
        return Feedback.model_validate(value)
    except (ParseFailure, ValidationError) as e:
        logger.warning("Stored feedback could not be decoded: %s", e)
        return None


def _get(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)

# ---------- Presentation helpers ----------

def score_tier(score: int) -> str:
    """Summary badge label."""
    if score > 75:
        return "Excellent"
    if score > 50:
        return "Good"
    return "Needs Improvement"

def badge_tier(score: int) -> str:
    """Colour of the score badge in detail section headers."""
    if score > 69:
        return "green"
    if score > 39:
        return "yellow"
    return "red"

def ats_tier(score: int) -> str:
    """Colour of the ATS card."""
    if score > 75:
        return "green"
    if score > 50:
        return "yellow"
    return "red"

def criteria_color(score: int) -> str:
    if score >= 75:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"

def format_size(num_bytes: int) -> str:
    """1024 -> '1.00 KB'"""
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    if num_bytes <= 0:
        return "0 Bytes"
    i = 0
    while num_bytes >= 1024 ** (i + 1) and i < len(units) - 1:
        i += 1
    return f"{num_bytes / (1024 ** i):.2f} {units[i]}"
