# backend/app/core/feedback_viewer.py

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from backend.app.core.errors import FeedbackTimeout, NotFound
from backend.app.core.feedback import load_feedback
from backend.app.core.records import get_record
from backend.app.core.storage import KVStore
from backend.app.models.feedback import Feedback
from backend.app.models.job_models import ViewState

logger = logging.getLogger(__name__)


class FeedbackViewer:
    """
    Read side of a submitted resume.

    LOADING -> READY        feedback already stored
            -> NOT_FOUND    no record for the id (terminal, no retry)
            -> WAITING      record stored, feedback still empty; a timer of
                            `wait_seconds` is armed
    WAITING -> READY        a refresh sees feedback before the timer fires
            -> TIMED_OUT    the timer fires first

    The timer is cancelled on READY and on close().
    """

    def __init__(
        self,
        kv: KVStore,
        resume_id: str,
        wait_seconds: float = 60.0,
        timer_factory: Callable[[float, Callable[[], None]], Any] = threading.Timer,
    ):
        self.kv = kv
        self.resume_id = resume_id
        self.wait_seconds = wait_seconds
        self._timer_factory = timer_factory
        self._timer = None
        self._lock = threading.RLock()
        self.state = ViewState.LOADING
        self.message = "Loading..."
        self.record: Optional[Dict[str, Any]] = None
        self.feedback: Optional[Feedback] = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def load(self) -> ViewState:
        with self._lock:
            if self.state != ViewState.LOADING:
                return self.state
            record = get_record(self.kv, self.resume_id)
            if record is None:
                self.state = ViewState.NOT_FOUND
                self.message = NotFound.default_message
                logger.error("Resume not found: %s", self.resume_id)
                return self.state
            self.record = record
            if self._take_feedback(record):
                return self.state
            self.state = ViewState.WAITING
            self.message = "Analyzing your resume..."
            self._arm_timer()
            return self.state

    def refresh(self) -> ViewState:
        """Re-read the record while waiting; no-op in any other state."""
        with self._lock:
            if self.state != ViewState.WAITING:
                return self.state
            record = get_record(self.kv, self.resume_id)
            if record is not None:
                self.record = record
                self._take_feedback(record)
            return self.state

    def expire(self) -> None:
        """Timer callback. Only a viewer still waiting times out."""
        with self._lock:
            self._timer = None
            if self.state != ViewState.WAITING:
                return
            self.state = ViewState.TIMED_OUT
            self.message = FeedbackTimeout.default_message
            logger.info("Feedback for %s not available after %ss", self.resume_id, self.wait_seconds)

    def close(self) -> None:
        with self._lock:
            self._cancel_timer()

    # ---------- Helpers ----------

    def _take_feedback(self, record: Dict[str, Any]) -> bool:
        feedback = load_feedback(record.get("feedback"))
        if feedback is None:
            return False
        self.feedback = feedback
        self.state = ViewState.READY
        self.message = ""
        self._cancel_timer()
        return True

    def _arm_timer(self) -> None:
        timer = self._timer_factory(self.wait_seconds, self.expire)
        if hasattr(timer, "daemon"):
            timer.daemon = True
        self._timer = timer
        timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class _NoTimer:
    """Deadline handled by the caller's loop instead of a thread."""

    def __init__(self, interval, function):
        pass

    def start(self):
        pass

    def cancel(self):
        pass


def wait_for_feedback(
    kv: KVStore,
    resume_id: str,
    wait_seconds: float = 60.0,
    poll_interval: float = 0.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> FeedbackViewer:
    """
    Blocking variant for request handlers: load once, then refresh every
    `poll_interval` seconds until READY or the deadline. With a zero
    interval the record is read only once and the call returns at the
    deadline, TIMED_OUT unless it was READY from the start.
    """
    viewer = FeedbackViewer(kv, resume_id, wait_seconds=wait_seconds, timer_factory=_NoTimer)
    with viewer:
        start = clock()
        viewer.load()
        while viewer.state == ViewState.WAITING:
            remaining = wait_seconds - (clock() - start)
            if remaining <= 0:
                viewer.expire()
                break
            sleep(min(poll_interval, remaining) if poll_interval > 0 else remaining)
            # feedback landing on the deadline itself is too late
            if clock() - start >= wait_seconds:
                viewer.expire()
                break
            if poll_interval > 0:
                viewer.refresh()
    return viewer
