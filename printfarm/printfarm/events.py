"""
Event channel and metrics.

The task handler owns one EventChannel. The swap executor emits a
SPOOL_CHANGE event per spool placed and finalize emits JOB_COMPLETED for
every successful task. Metrics is the default subscriber; tests can
subscribe a plain list's append method to record events.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from enum import Enum


class EventKind(Enum):
    SPOOL_CHANGE = "spool_change"
    JOB_COMPLETED = "job_completed"


@dataclass(frozen=True)
class PrintEvent:
    """
    Something that happened on a printer.

    Attributes:
        kind: Event kind
        printer_id: Printer the event happened on
        spool_id: Spool placed (SPOOL_CHANGE only)
        task_name: Print that completed (JOB_COMPLETED only)
    """
    kind: EventKind
    printer_id: int
    spool_id: Optional[int] = None
    task_name: Optional[str] = None


EventSink = Callable[[PrintEvent], None]


class EventChannel:

    def __init__(self) -> None:
        self._sinks: List[EventSink] = []

    def subscribe(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def unsubscribe(self, sink: EventSink) -> None:
        self._sinks.remove(sink)

    def emit(self, event: PrintEvent) -> None:
        for sink in list(self._sinks):
            sink(event)

    __call__ = emit


class Metrics:
    """Counters for spool changes and fulfilled jobs. Never decremented."""

    def __init__(self) -> None:
        self.spool_change_count = 0
        self.jobs_fulfilled = 0

    def __call__(self, event: PrintEvent) -> None:
        if event.kind == EventKind.SPOOL_CHANGE:
            self.spool_change_count += 1
        elif event.kind == EventKind.JOB_COMPLETED:
            self.jobs_fulfilled += 1

    def as_dict(self) -> Dict[str, Any]:
        return {
            "spool_changes": self.spool_change_count,
            "jobs_fulfilled": self.jobs_fulfilled,
        }

    def summary(self) -> str:
        return "\n".join([
            "=" * 20 + " DASHBOARD " + "=" * 20,
            f"Spool changes: {self.spool_change_count}",
            f"Prints fulfilled: {self.jobs_fulfilled}",
            "=" * 51,
        ])

    def __repr__(self) -> str:
        return (
            f"Metrics(spool_change_count={self.spool_change_count}, "
            f"jobs_fulfilled={self.jobs_fulfilled})"
        )
