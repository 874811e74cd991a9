"""Download events: one per repository attempt, for metrics and debugging only."""
from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from constants import FetchKind
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from .models import FetchOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadEvent:
    """What happened when one repository was asked for one document."""

    group: str
    artifact: str
    version: Optional[str]
    repository_uri: str
    kind: FetchKind
    outcome: FetchOutcome
    error_class: Optional[str] = None
    duration_ms: int = 0


EventSink = Callable[[DownloadEvent], None]


def log_event(event: DownloadEvent) -> None:
    """Default sink: debug-log the event."""
    if not is_debug_enabled(logger):
        return
    logger.debug(
        "Repository %s %s",
        event.kind.value,
        event.outcome.value,
        extra=extra_context(
            event="download",
            component="downloader",
            action=event.kind.value,
            outcome=event.outcome.value,
            target=safe_url(event.repository_uri),
            duration_ms=event.duration_ms,
            group_id=event.group,
            artifact_id=event.artifact,
            version=event.version,
            exception=event.error_class,
        ),
    )


class EventRecorder:
    """Thread-safe sink keeping every event and outcome counts.

    Optionally forwards to another sink so logging keeps working.
    """

    def __init__(self, forward: Optional[EventSink] = log_event):
        self._forward = forward
        self._lock = threading.Lock()
        self._events: List[DownloadEvent] = []
        self._counts: Counter = Counter()

    def __call__(self, event: DownloadEvent) -> None:
        with self._lock:
            self._events.append(event)
            self._counts[(event.kind, event.outcome)] += 1
        if self._forward is not None:
            self._forward(event)

    @property
    def events(self) -> List[DownloadEvent]:
        with self._lock:
            return list(self._events)

    def for_repository(self, uri: str) -> List[DownloadEvent]:
        prefix = uri.rstrip("/")
        return [e for e in self.events if e.repository_uri.rstrip("/") == prefix]

    def counts(self) -> Dict[Tuple[str, str], int]:
        """Counts keyed by (kind, outcome) string values."""
        with self._lock:
            return {(k.value, o.value): n for (k, o), n in self._counts.items()}
