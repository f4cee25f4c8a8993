# backend/app/core/records.py

import json
import logging
from typing import Any, Dict, List, Optional

from backend.app.core.storage import KVStore

logger = logging.getLogger(__name__)


def resume_key(resume_id: str) -> str:
    return f"resume:{resume_id}"


def get_record(kv: KVStore, resume_id: str) -> Optional[Dict[str, Any]]:
    """Stored record for `resume_id`, or None if absent or not valid JSON."""
    raw = kv.get(resume_key(resume_id))
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Record %s is not valid JSON", resume_key(resume_id))
        return None
    return data if isinstance(data, dict) else None


def list_records(kv: KVStore) -> List[Dict[str, Any]]:
    """Every stored resume record, skipping undecodable entries."""
    records = []
    for item in kv.list("resume:*", deep=True) or []:
        try:
            data = json.loads(item.value or "")
        except json.JSONDecodeError:
            logger.warning("Skipping undecodable record %s", item.key)
            continue
        if isinstance(data, dict):
            records.append(data)
    return records
