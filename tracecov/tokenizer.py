"""Split a raw bytecode trace into per-script record blocks."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Iterator, List, Optional

from .config import TraceConfig

SCRIPT_START = re.compile(r"^--- SCRIPT (.*):(\d+) ---$")
SCRIPT_END = re.compile(r"^--- END SCRIPT")

logger = logging.getLogger(__name__)


def split_trace(text: str) -> List[str]:
    """Break trace text into lines, dropping carriage returns."""

    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


class TraceTokenizer:
    """Two-state (outside/inside record) line accumulator.

    ``process_line`` returns the finished block when a line closes a record,
    otherwise ``None``. Blocks whose header is one of the configured sentinel
    headers are dropped here and never returned.
    """

    def __init__(self, config: Optional[TraceConfig] = None) -> None:
        self.config = config or TraceConfig()
        self._block: Optional[List[str]] = None

    @property
    def in_record(self) -> bool:
        return self._block is not None

    def process_line(self, line: str) -> Optional[List[str]]:
        if self._block is None:
            if SCRIPT_START.match(line):
                self._block = [line]
            return None

        self._block.append(line)
        if not SCRIPT_END.match(line):
            return None

        block, self._block = self._block, None
        if block[0] in self.config.sentinel_headers:
            logger.debug("discarding sentinel record %s", block[0])
            return None
        return block

    def blocks(self, lines: Iterable[str]) -> Iterator[List[str]]:
        for line in lines:
            block = self.process_line(line)
            if block is not None:
                yield block
