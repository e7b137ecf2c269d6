"""Per-line aggregation of instruction counts into coverage classes."""

from __future__ import annotations

import enum
import math
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple

from .script import Instruction

UNREACHABLE = -1


class CoverageClass(enum.Enum):
    FULL = "full"
    SOME = "some"
    NONE = "none"
    DEAD = "dead"
    INSIGNIFICANT = ""


class Line:
    """The instructions of every script that map to one source line.

    Instructions are only ever added while a :class:`File` is being built,
    and counts are read after that, so ``counts()`` caches its first result
    without invalidation.
    """

    def __init__(self, number: int, halt_mnemonic: str = "stop") -> None:
        self.number = number
        self.halt_mnemonic = halt_mnemonic
        self.instructions: "OrderedDict[str, Instruction]" = OrderedDict()
        self.start_func = False
        self.end_func = False
        self._counts: Optional[List[int]] = None

    def add_instruction(self, key: str, instruction: Instruction) -> bool:
        """Register ``instruction`` under ``key``; the first registration wins."""

        if key in self.instructions:
            return False
        self.instructions[key] = instruction
        return True

    def counts(self) -> List[int]:
        """Distinct counts for the line, ascending; -1 marks unreachable code.

        A single element means every instruction ran equally often. An empty
        list means the line has nothing significant to execute.
        """

        if self._counts is None:
            self._counts = self._compute_counts()
        return self._counts

    def _compute_counts(self) -> List[int]:
        raw: List[int] = []
        live: List[int] = []
        previous: Optional[Instruction] = None

        for ins in self.instructions.values():
            count = ins.count
            if ins.reachable:
                # A fall-through with the same count, or a zero count after a
                # non-zero one, is an interpreter artifact, not a second branch.
                skip = (
                    previous is not None
                    and previous.falls_through
                    and (count == previous.count or (count == 0 and previous.count != 0))
                )
                if not skip:
                    raw.append(count)
                    live.append(count)
            else:
                raw.append(UNREACHABLE)
            previous = ins

        if not raw:
            return []
        if len(live) == len(raw) and min(live) == max(live):
            return [live[0]]
        if raw == [UNREACHABLE]:
            first = next(iter(self.instructions.values()))
            if first.text == self.halt_mnemonic:
                return []
            return [UNREACHABLE]
        return sorted(set(raw))

    def coverage(self) -> CoverageClass:
        counts = self.counts()
        if not counts:
            return CoverageClass.INSIGNIFICANT
        if counts[0] > 0:
            return CoverageClass.FULL
        if len(counts) == 1:
            return CoverageClass.NONE if counts[0] == 0 else CoverageClass.DEAD
        # unreachable code next to executed code is a back-end artifact
        if counts[0] == UNREACHABLE and counts[1] > 0:
            return CoverageClass.FULL
        return CoverageClass.SOME


class File:
    def __init__(self, filename: str, halt_mnemonic: str = "stop") -> None:
        self.filename = filename
        self.halt_mnemonic = halt_mnemonic
        self.lines: Dict[int, Line] = {}

    def line(self, number: int) -> Line:
        line = self.lines.get(number)
        if line is None:
            line = Line(number, self.halt_mnemonic)
            self.lines[number] = line
        return line

    def coverage(self) -> Tuple[int, int, int, int]:
        """Return ``(full, some, none, dead)`` line tallies."""

        tally = {cls: 0 for cls in CoverageClass}
        for line in self.lines.values():
            tally[line.coverage()] += 1
        return (
            tally[CoverageClass.FULL],
            tally[CoverageClass.SOME],
            tally[CoverageClass.NONE],
            tally[CoverageClass.DEAD],
        )

    def coverage_class(self, number: int) -> CoverageClass:
        line = self.lines.get(number)
        if line is None:
            return CoverageClass.INSIGNIFICANT
        return line.coverage()

    def profile_bucket(self, number: int) -> int:
        """Base-10 order of magnitude (0-9) of the hottest count on a line."""

        line = self.lines.get(number)
        if line is None:
            return 0
        counts = line.counts()
        if not counts or counts[-1] <= 0:
            return 0
        return min(int(math.floor(math.log10(counts[-1]))), 9)
