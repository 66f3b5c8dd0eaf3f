"""
Pipeline events and logging setup.

Components report notable outcomes (fallbacks, absorbed failures, background
write errors) as PipelineEvent values delivered to an injected EventSink, so
tests can assert on failure classification instead of log text. The default
sink forwards every event to the standard logger.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class PipelineEvent:
    """One observable outcome inside the pipeline."""

    name: str
    level: int = logging.INFO
    fields: Dict[str, Any] = field(default_factory=dict)
    error: Optional[BaseException] = None

    @property
    def error_code(self) -> Optional[str]:
        """Classification of the attached error (e.g. quota_exceeded), if any."""
        if self.error is None:
            return None
        return getattr(self.error, "code", type(self.error).__name__)


class EventSink(Protocol):
    """Receives pipeline events. Must not raise."""

    def emit(self, event: PipelineEvent) -> None:
        ...


class LoggingEventSink:
    """Writes events to the standard logger."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger

    def emit(self, event: PipelineEvent) -> None:
        parts = " ".join(f"{k}={v!r}" for k, v in event.fields.items())
        if event.error is not None:
            parts = f"{parts} error={event.error_code}: {event.error}".strip()
        self._log.log(event.level, "[%s] %s", event.name, parts)


class CollectingEventSink:
    """Keeps events in memory (tests, debug endpoints); optionally also logs them."""

    def __init__(self, forward: Optional[EventSink] = None, maxlen: Optional[int] = None):
        self.events: Deque[PipelineEvent] = deque(maxlen=maxlen)
        self._forward = forward

    def emit(self, event: PipelineEvent) -> None:
        self.events.append(event)
        if self._forward is not None:
            self._forward.emit(event)

    def named(self, name: str) -> List[PipelineEvent]:
        return [e for e in self.events if e.name == name]

    def names(self) -> List[str]:
        return [e.name for e in self.events]


def configure_logging(level: str = "INFO") -> None:
    """Basic process-wide logging config; called once by the app factory."""
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format=LOG_FORMAT,
    )
