"""Observer dispatch and typed change events for the coverage engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional

if TYPE_CHECKING:
    from .engine import FileSnapshot, LineSnapshot

ON_NEW_SCRIPT = "on_new_script"
ON_SCRIPT_UPDATE = "on_script_update"
ON_LINE_UPDATE = "on_line_update"

logger = logging.getLogger(__name__)


class CoverageObserver:
    """Convenience base with no-op handlers.

    Observers do not have to inherit from this class: any object is accepted
    and handlers it does not define are skipped.
    """

    def on_new_script(self, filename: str, snapshot: "FileSnapshot") -> None:
        pass

    def on_script_update(self, filename: str, snapshot: "FileSnapshot") -> None:
        pass

    def on_line_update(self, filename: str, line: int, data: "LineSnapshot") -> None:
        pass


class ObserverList:
    """Ordered observer registry with synchronous fan-out."""

    def __init__(self) -> None:
        self._observers: List[Any] = []

    def add(self, observer: Any) -> None:
        self._observers.append(observer)

    def remove(self, observer: Any) -> None:
        for idx, existing in enumerate(self._observers):
            if existing is observer:
                del self._observers[idx]
                return

    def dispatch(self, name: str, *args: Any) -> None:
        for observer in list(self._observers):
            handler = getattr(observer, name, None)
            if callable(handler):
                handler(*args)


@dataclass
class CoverageEvent:
    type: str
    filename: str


@dataclass
class ScriptEvent(CoverageEvent):
    snapshot: Optional["FileSnapshot"] = None


@dataclass
class LineUpdateEvent(CoverageEvent):
    line: int = 0
    data: Optional["LineSnapshot"] = None


class EventRecorder(CoverageObserver):
    """Collects every notification as a typed event, optionally logging it."""

    def __init__(self, *, log_level: Optional[int] = None) -> None:
        self.events: List[CoverageEvent] = []
        self.log_level = log_level

    def _record(self, event: CoverageEvent) -> None:
        self.events.append(event)
        if self.log_level is not None:
            logger.log(self.log_level, "%s %s", event.type, describe_event(event))

    def on_new_script(self, filename: str, snapshot: "FileSnapshot") -> None:
        self._record(ScriptEvent(type=ON_NEW_SCRIPT, filename=filename, snapshot=snapshot))

    def on_script_update(self, filename: str, snapshot: "FileSnapshot") -> None:
        self._record(ScriptEvent(type=ON_SCRIPT_UPDATE, filename=filename, snapshot=snapshot))

    def on_line_update(self, filename: str, line: int, data: "LineSnapshot") -> None:
        self._record(LineUpdateEvent(type=ON_LINE_UPDATE, filename=filename, line=line, data=data))

    def of_type(self, name: str) -> List[CoverageEvent]:
        return [event for event in self.events if event.type == name]

    def drain(self) -> List[CoverageEvent]:
        events, self.events = self.events, []
        return events


def describe_event(event: CoverageEvent) -> str:
    if isinstance(event, LineUpdateEvent):
        data = event.data
        if data is None:
            return f"{event.filename} line {event.line}"
        return f"{event.filename} line {event.line}: {data.coverage.value or '-'} {data.counts}"
    if isinstance(event, ScriptEvent) and event.snapshot is not None:
        snap = event.snapshot
        return (
            f"{event.filename}: full={snap.covered} some={snap.partial} "
            f"none={snap.uncovered} dead={snap.dead}"
        )
    return event.filename
