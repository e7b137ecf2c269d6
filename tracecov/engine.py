"""Coverage engine: parse successive trace dumps and report what changed.

Each :meth:`CoverageEngine.parse_data` call rebuilds File/Line structures
from the dump it is given, then folds the result into the accumulated
per-file snapshots. Snapshots only grow: a script that disappears from a
later dump (e.g. reclaimed by the interpreter) keeps its last known lines,
which is why per-file totals are recomputed from the accumulated snapshot
rather than from the latest dump.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import TraceConfig
from .errors import ReentrantParseError
from .events import ON_LINE_UPDATE, ON_NEW_SCRIPT, ON_SCRIPT_UPDATE, ObserverList
from .lines import CoverageClass, File, Line
from .script import RemapFn, Script, TraceParser

logger = logging.getLogger(__name__)


@dataclass
class LineSnapshot:
    coverage: CoverageClass
    counts: List[int] = field(default_factory=list)
    start_func: bool = False
    end_func: bool = False

    @classmethod
    def from_line(cls, line: Line) -> "LineSnapshot":
        return cls(
            coverage=line.coverage(),
            counts=list(line.counts()),
            start_func=line.start_func,
            end_func=line.end_func,
        )


@dataclass
class FileSnapshot:
    """Accumulated coverage of one file.

    ``lines[i]`` describes source line ``i + 1``; ``None`` marks lines with
    no instructions seen so far.
    """

    filename: str
    covered: int = 0
    partial: int = 0
    uncovered: int = 0
    dead: int = 0
    lines: List[Optional[LineSnapshot]] = field(default_factory=list)

    @classmethod
    def from_file(cls, file: File) -> "FileSnapshot":
        snapshot = cls(filename=file.filename)
        for number in sorted(file.lines):
            # line numbers below 1 have no slot in the dense array
            if number < 1:
                continue
            snapshot.set_line(number - 1, LineSnapshot.from_line(file.lines[number]))
        # totals must agree with recount() or an unchanged dump reports an update
        snapshot.covered, snapshot.partial, snapshot.uncovered, snapshot.dead = snapshot.recount()
        return snapshot

    def line(self, index: int) -> Optional[LineSnapshot]:
        if 0 <= index < len(self.lines):
            return self.lines[index]
        return None

    def set_line(self, index: int, data: LineSnapshot) -> None:
        if index >= len(self.lines):
            self.lines.extend([None] * (index + 1 - len(self.lines)))
        self.lines[index] = data

    @property
    def totals(self) -> Tuple[int, int, int, int]:
        return (self.covered, self.partial, self.uncovered, self.dead)

    def recount(self) -> Tuple[int, int, int, int]:
        """Tally the stored lines by coverage class."""

        tally = {cls: 0 for cls in CoverageClass}
        for data in self.lines:
            if data is not None:
                tally[data.coverage] += 1
        return (
            tally[CoverageClass.FULL],
            tally[CoverageClass.SOME],
            tally[CoverageClass.NONE],
            tally[CoverageClass.DEAD],
        )


def group_scripts(scripts: Iterable[Script], halt_mnemonic: str = "stop") -> Dict[str, File]:
    """Assign every instruction of every script to its file and line."""

    files: Dict[str, File] = {}
    for script in scripts:
        file = files.get(script.filename)
        if file is None:
            file = File(script.filename, halt_mnemonic)
            files[script.filename] = file
        for ins in script.instructions:
            file.line(ins.source_line).add_instruction(f"{script.name}:{ins.address}", ins)
        if script.instructions:
            # first and last instructions roughly bracket the function body
            file.line(script.instructions[0].source_line).start_func = True
            file.line(script.instructions[-1].source_line).end_func = True
    return files


class CoverageEngine:
    """Stateful trace-to-coverage engine.

    Not thread-safe; calls to :meth:`parse_data` must be serialized by the
    caller and must not be made from observer callbacks.
    """

    def __init__(
        self,
        remap: Optional[RemapFn] = None,
        *,
        config: Optional[TraceConfig] = None,
    ) -> None:
        self.remap = remap
        self.config = config or TraceConfig()
        self.filenames: Dict[str, FileSnapshot] = {}
        self.observers = ObserverList()
        self._parsing = False

    def add_observer(self, observer: Any) -> None:
        self.observers.add(observer)

    def remove_observer(self, observer: Any) -> None:
        self.observers.remove(observer)

    def snapshot(self, filename: str) -> Optional[FileSnapshot]:
        return self.filenames.get(filename)

    def snapshots(self) -> List[FileSnapshot]:
        return [self.filenames[name] for name in sorted(self.filenames)]

    def parse_data(self, text: str) -> List[FileSnapshot]:
        """Parse one trace dump, update stored snapshots and notify observers."""

        if self._parsing:
            raise ReentrantParseError("parse_data called while a parse is in progress")
        self._parsing = True
        try:
            parser = TraceParser(self.remap, self.config)
            scripts = parser.parse(text)
            files = group_scripts(scripts, self.config.halt_mnemonic)
            logger.debug("parsed %d scripts across %d files", len(scripts), len(files))
            for filename in sorted(files):
                self._reconcile(FileSnapshot.from_file(files[filename]))
        finally:
            self._parsing = False
        return self.snapshots()

    def _reconcile(self, new: FileSnapshot) -> None:
        filename = new.filename
        old = self.filenames.get(filename)
        if old is None:
            self.filenames[filename] = new
            self.observers.dispatch(ON_NEW_SCRIPT, filename, new)
            return

        for index, data in enumerate(new.lines):
            if data is None:
                continue
            existing = old.line(index)
            if existing is None:
                old.set_line(index, data)
                # adopted lines are reported by 1-based line number
                self.observers.dispatch(ON_LINE_UPDATE, filename, index + 1, data)
                continue
            if existing.coverage is not data.coverage or existing.counts != data.counts:
                existing.coverage = data.coverage
                existing.counts = list(data.counts)
                # changed lines are reported by 0-based index
                self.observers.dispatch(ON_LINE_UPDATE, filename, index, existing)

        totals = old.recount()
        if totals != old.totals:
            old.covered, old.partial, old.uncovered, old.dead = totals
            self.observers.dispatch(ON_SCRIPT_UPDATE, filename, old)
