# backend/worker/worker.py

from celery import Celery
from celery.signals import worker_ready
from backend.app.config import settings

celery_app = Celery("resume_review")
celery_app.config_from_object("backend.celeryconfig")

# Ensure tasks are registered on worker start
import backend.app.core.tasks       # noqa: F401,E402

@worker_ready.connect
def _warmup_on_ready(sender=None, **kwargs):
    """Load the reviewer model as soon as a worker comes up."""
    if not settings.WARMUP_ENABLED:
        return
    celery_app.send_task("warmup_llm", queue="llm", routing_key="llm")
