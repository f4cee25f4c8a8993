# backend/app/api/deps.py

from typing import Optional
from fastapi import Header, HTTPException, Request
from starlette import status

from backend.app.config import Settings, settings
from backend.app.core.storage import FileStorage, KVStore, build_file_storage, build_kv_store
from backend.app.core.upload_pipeline import SubmissionGuard


def get_settings() -> Settings:
    return settings

def get_kv() -> KVStore:
    return build_kv_store(settings)

def get_storage() -> FileStorage:
    return build_file_storage(settings)

def get_queue():
    # imported lazily: pulls in the Celery app
    from backend.app.core.async_queue import queue
    return queue

def get_guard() -> SubmissionGuard:
    return SubmissionGuard.from_settings(build_kv_store(settings), settings)

def client_id(request: Request, x_client_id: Optional[str] = Header(default=None)) -> str:
    """Who is submitting: explicit header, else the peer address."""
    if x_client_id and x_client_id.strip():
        return x_client_id.strip()
    return request.client.host if request.client else "anonymous"

def require_auth(request: Request, authorization: Optional[str] = Header(default=None)) -> None:
    """
    Bearer-token check. Unauthenticated callers get 401 with the login
    redirect target `/auth?next={path}`.
    """
    tokens = settings.auth_tokens()
    if not tokens:
        return
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() == "bearer" and token.strip() in tokens:
        return
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": "Not authenticated", "redirect": f"/auth?next={request.url.path}"},
        headers={"WWW-Authenticate": "Bearer"},
    )
