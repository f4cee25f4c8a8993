# backend/app/core/storage.py

import fnmatch
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol

import redis

from backend.app.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class Blob:
    """In-memory file: name + bytes."""
    name: str
    data: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class StoredFile:
    path: str
    name: str
    size: int


@dataclass
class KVItem:
    key: str
    value: Optional[str] = None


# ---------------- Object storage ----------------

class FileStorage(Protocol):
    def upload(self, files: List[Blob]) -> Optional[StoredFile]: ...
    def read(self, path: str) -> Optional[bytes]: ...


class LocalFileStorage:
    """Object storage backed by a directory. Paths handed out are relative to `root`."""

    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def upload(self, files: List[Blob]) -> Optional[StoredFile]:
        """Store each blob; returns the handle of the last one, or None if nothing was stored."""
        stored = None
        for blob in files or []:
            rel = f"{uuid.uuid4().hex}/{self._safe_name(blob.name)}"
            target = self.root / rel
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(blob.data)
            except OSError:
                logger.exception("Could not write %s", target)
                return None
            stored = StoredFile(path=rel, name=blob.name, size=blob.size)
        return stored

    def read(self, path: str) -> Optional[bytes]:
        target = self._resolve(path)
        if target is None or not target.is_file():
            return None
        return target.read_bytes()

    def _resolve(self, path: str) -> Optional[Path]:
        if not path:
            return None
        target = (self.root / path.lstrip("/")).resolve()
        # keep reads inside the storage root
        if self.root != target and self.root not in target.parents:
            return None
        return target

    @staticmethod
    def _safe_name(name: str) -> str:
        cleaned = "".join(c if c.isalnum() or c in "._-" else "_" for c in Path(name or "").name)
        return cleaned or "file"


# ---------------- Key-value store ----------------

class KVStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str) -> None: ...
    def set_if_absent(self, key: str, value: str, ttl: Optional[int] = None) -> bool: ...
    def delete(self, key: str) -> None: ...
    def delete_if_equals(self, key: str, value: str) -> bool: ...
    def list(self, pattern: str, deep: bool = False) -> List[KVItem]: ...


class KVUnavailable(RuntimeError):
    """The key-value backend could not be reached."""


@contextmanager
def _kv_errors(op: str, key: str):
    try:
        yield
    except redis.RedisError as e:
        raise KVUnavailable(f"{op} {key!r} failed: {e}") from e


_DELETE_IF_EQUALS = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("DEL", KEYS[1])
end
return 0
"""


class RedisKVStore:
    def __init__(self, url: str, client: Optional[redis.Redis] = None):
        self._r = client or redis.Redis.from_url(url, decode_responses=True)

    def get(self, key: str) -> Optional[str]:
        with _kv_errors("get", key):
            return self._r.get(key)

    def set(self, key: str, value: str) -> None:
        with _kv_errors("set", key):
            self._r.set(key, value)

    def set_if_absent(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        with _kv_errors("set", key):
            return bool(self._r.set(key, value, nx=True, ex=ttl))

    def delete(self, key: str) -> None:
        with _kv_errors("delete", key):
            self._r.delete(key)

    def delete_if_equals(self, key: str, value: str) -> bool:
        with _kv_errors("delete", key):
            return bool(self._r.eval(_DELETE_IF_EQUALS, 1, key, value))

    def list(self, pattern: str, deep: bool = False) -> List[KVItem]:
        with _kv_errors("list", pattern):
            keys = sorted(self._r.scan_iter(match=pattern))
            if not deep or not keys:
                return [KVItem(key=k) for k in keys]
            values = self._r.mget(keys)
        return [KVItem(key=k, value=v) for k, v in zip(keys, values) if v is not None]


class MemoryKVStore:
    """Process-local store for development and tests. Same glob semantics as Redis MATCH."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def set_if_absent(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        # ttl is not enforced in memory
        with self._lock:
            if key in self._data:
                return False
            self._data[key] = value
            return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def delete_if_equals(self, key: str, value: str) -> bool:
        with self._lock:
            if self._data.get(key) != value:
                return False
            del self._data[key]
            return True

    def list(self, pattern: str, deep: bool = False) -> List[KVItem]:
        with self._lock:
            keys = sorted(k for k in self._data if fnmatch.fnmatchcase(k, pattern))
            return [KVItem(key=k, value=self._data[k] if deep else None) for k in keys]


# ---------------- Factories ----------------

_kv_singletons: Dict[str, KVStore] = {}

def build_kv_store(cfg: Settings) -> KVStore:
    backend = (cfg.KV_BACKEND or "redis").lower()
    if backend not in {"redis", "memory"}:
        raise ValueError(f"Unsupported KV_BACKEND: {cfg.KV_BACKEND}")
    # one store per backend per process so the memory backend is shared
    cache_key = f"{backend}:{cfg.KV_URL}"
    if cache_key not in _kv_singletons:
        if backend == "memory":
            _kv_singletons[cache_key] = MemoryKVStore()
        else:
            _kv_singletons[cache_key] = RedisKVStore(cfg.KV_URL)
    return _kv_singletons[cache_key]

def build_file_storage(cfg: Settings) -> LocalFileStorage:
    return LocalFileStorage(cfg.STORAGE_ROOT)

def reset_stores() -> None:
    _kv_singletons.clear()
