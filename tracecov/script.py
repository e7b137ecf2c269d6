"""Script records built from trace blocks.

A script is one function body, top-level unit or eval string as dumped by
the interpreter. Its name (filename plus start line) is not unique on its
own, so duplicates are detected through :meth:`Script.signature`, which
covers the entry index and every instruction's address, line and text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .config import TraceConfig
from .errors import SignatureMismatchError
from .reachability import analyze
from .tokenizer import SCRIPT_END, SCRIPT_START, TraceTokenizer, split_trace

# Only the first three counts are execution counts; later ones are
# auxiliary statistics.
SCRIPT_DATA = re.compile(r"^(\d+):(\d+(?:/\d+){2,})\s+x\s+(\d+)\s+(.*)$")

RemapFn = Callable[[str, int], Tuple[str, int]]

logger = logging.getLogger(__name__)


@dataclass
class Instruction:
    address: int
    source_line: int
    text: str
    count: int = 0
    reachable: bool = False
    falls_through: bool = False
    entry_target: bool = False


@dataclass
class Script:
    filename: str = ""
    start_line: int = 0
    entry_index: Optional[int] = None
    instructions: List[Instruction] = field(default_factory=list)
    address_index: Dict[int, int] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return f"{self.filename}:{self.start_line}"

    def append(self, instruction: Instruction) -> None:
        self.address_index[instruction.address] = len(self.instructions)
        self.instructions.append(instruction)

    def signature(self) -> str:
        head = f"{self.name}:{self.entry_index}\n"
        body = "\n".join(
            f"{ins.address}:{ins.source_line}:{ins.text}" for ins in self.instructions
        )
        return head + body

    def add_counts(self, other: "Script") -> None:
        """Add ``other``'s per-instruction counts into this script."""

        if other.signature() != self.signature():
            raise SignatureMismatchError(
                f"cannot merge counts of {other.name} into structurally different {self.name}"
            )
        for mine, theirs in zip(self.instructions, other.instructions):
            mine.count += theirs.count

    def counts(self) -> List[int]:
        return [ins.count for ins in self.instructions]


def build_script(
    lines: Iterable[str],
    remap: Optional[RemapFn] = None,
    config: Optional[TraceConfig] = None,
) -> Script:
    """Parse one record block into a :class:`Script` (no reachability yet)."""

    config = config or TraceConfig()
    script = Script()
    raw_filename = ""

    for line in lines:
        match = SCRIPT_START.match(line)
        if match:
            raw_filename = match.group(1)
            filename, start = raw_filename, int(match.group(2))
            if remap is not None:
                filename, start = remap(raw_filename, start)
            script.filename = filename
            script.start_line = start
            continue
        if SCRIPT_END.match(line):
            continue
        if line == config.entry_marker:
            script.entry_index = len(script.instructions)
            continue
        match = SCRIPT_DATA.match(line)
        if match:
            source_line = int(match.group(3))
            if remap is not None:
                source_line = remap(raw_filename, source_line)[1]
            counts = match.group(2).split("/")
            text = match.group(4)
            for placeholder in config.placeholder_mnemonics:
                # nested function bodies can run to many lines
                if text.startswith(placeholder + " "):
                    text = placeholder
                    break
            script.append(
                Instruction(
                    address=int(match.group(1)),
                    source_line=source_line,
                    text=text,
                    count=sum(int(c) for c in counts[:3]),
                )
            )
            continue
        if line.startswith("\t"):
            if script.instructions:
                script.instructions[-1].text += line
            else:
                logger.debug("continuation line before any instruction in %s", script.name)
    return script


class TraceParser:
    """Turns trace text into deduplicated, analyzed scripts.

    Scripts seen more than once in the same parser session have their counts
    merged into the first instance; only new scripts are analyzed.
    """

    def __init__(
        self,
        remap: Optional[RemapFn] = None,
        config: Optional[TraceConfig] = None,
    ) -> None:
        self.remap = remap
        self.config = config or TraceConfig()
        self.tokenizer = TraceTokenizer(self.config)
        self.scripts: List[Script] = []
        self._by_signature: Dict[str, Script] = {}

    def process_line(self, line: str) -> None:
        block = self.tokenizer.process_line(line)
        if block is not None:
            self.add_block(block)

    def add_block(self, block: List[str]) -> Script:
        script = build_script(block, self.remap, self.config)
        signature = script.signature()
        existing = self._by_signature.get(signature)
        if existing is not None:
            logger.debug("merging repeated dump of %s", existing.name)
            existing.add_counts(script)
            return existing
        analyze(script)
        self.scripts.append(script)
        self._by_signature[signature] = script
        return script

    def parse(self, text: str) -> List[Script]:
        for line in split_trace(text):
            self.process_line(line)
        return self.scripts
