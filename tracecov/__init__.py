"""
tracecov - line coverage from interpreter bytecode disassembly traces.

The trace is the textual per-script disassembly an interpreter prints in its
debug/profiling mode, with execution counts per instruction.  Each module is
implemented in its own file to keep responsibilities clear:

    tokenizer.py     → split raw trace text into per-script record blocks
    script.py        → build instruction sequences, merge repeated dumps
    opcodes.py       → mnemonic categories and branch operand decoding
    reachability.py  → mark reachable and fall-through instructions
    lines.py         → per-line counts and coverage classes
    engine.py        → snapshots, diffing against earlier dumps, observers
    events.py        → observer dispatch and typed change events
    remap.py         → remap hooks back to original source coordinates
    report.py        → JSON records and text summaries
"""

from .config import TraceConfig  # noqa: F401
from .errors import (  # noqa: F401
    ReentrantParseError,
    SignatureMismatchError,
    TraceCoverageError,
    UnresolvedTargetError,
)
from .script import Instruction, Script, TraceParser, build_script  # noqa: F401
from .reachability import analyze  # noqa: F401
from .lines import CoverageClass, File, Line  # noqa: F401
from .events import CoverageObserver, EventRecorder  # noqa: F401
from .engine import CoverageEngine, FileSnapshot, LineSnapshot  # noqa: F401
from .remap import PrefixRemap  # noqa: F401
from .report import encode_snapshots, format_summary, snapshot_to_dict  # noqa: F401

__all__ = [
    "TraceConfig",
    "TraceCoverageError",
    "SignatureMismatchError",
    "UnresolvedTargetError",
    "ReentrantParseError",
    "Instruction",
    "Script",
    "TraceParser",
    "build_script",
    "analyze",
    "CoverageClass",
    "File",
    "Line",
    "CoverageObserver",
    "EventRecorder",
    "CoverageEngine",
    "FileSnapshot",
    "LineSnapshot",
    "PrefixRemap",
    "encode_snapshots",
    "format_summary",
    "snapshot_to_dict",
]

__version__ = "0.1.0-dev"
