"""Progress notifications for template retrieval.

Observers are optional. The pipeline produces the same archive whether or
not anything is listening, so a failing observer is logged and skipped.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

log = logging.getLogger(__name__)

PHASE_VALIDATE = "validate"
PHASE_FETCH = "fetch"
PHASE_EXTRACT = "extract"
PHASE_ASSEMBLE = "assemble"
PHASE_WRITE = "write"
PHASE_DONE = "done"
PHASE_FAILED = "failed"


@dataclass(frozen=True)
class ProgressEvent:
    phase: str
    percent: int
    message: str = ""
    request_id: str = "-"


class ProgressObserver(Protocol):
    def on_progress(self, event: ProgressEvent) -> None:
        ...


class LoggingProgressObserver:
    """Writes every event to the application log."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or log

    def on_progress(self, event: ProgressEvent) -> None:
        level = logging.WARNING if event.phase == PHASE_FAILED else logging.INFO
        self.logger.log(
            level,
            "%3d%% %s",
            event.percent,
            event.message or event.phase,
            extra={"request_id": event.request_id, "stage": event.phase},
        )


class ProgressReporter:
    def __init__(self, observers: Iterable[ProgressObserver] = (), request_id: str = "-"):
        self.observers: List[ProgressObserver] = list(observers)
        self.request_id = request_id

    def report(self, phase: str, percent: int, message: str = "") -> None:
        if not self.observers:
            return
        event = ProgressEvent(
            phase=phase,
            percent=max(0, min(100, percent)),
            message=message,
            request_id=self.request_id,
        )
        for observer in self.observers:
            try:
                observer.on_progress(event)
            except Exception:
                log.exception(
                    "Progress observer %r failed", observer,
                    extra={"request_id": self.request_id, "stage": phase},
                )
