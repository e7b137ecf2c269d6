"""Mnemonic categories and branch operand decoding for trace disassembly."""

from __future__ import annotations

import enum
import re
from typing import Dict, FrozenSet, List, Optional


class FlowKind(enum.Enum):
    LINEAR = "linear"
    TERMINATOR = "terminator"
    UNCONDITIONAL = "unconditional"
    CONDITIONAL = "conditional"
    SWITCH = "switch"


TERMINATORS: FrozenSet[str] = frozenset({
    "stop", "return", "throw", "retrval",
    # gosub counts as a conditional, so its return is a terminator
    "retsub",
})

UNCONDITIONALS: FrozenSet[str] = frozenset({
    "goto", "gotox", "default", "defaultx", "filter",
})

CONDITIONALS: FrozenSet[str] = frozenset({
    "ifeq", "ifeqx", "ifne", "ifnex",
    "or", "orx", "and", "andx",
    # the instruction after a gosub runs once the subroutine returns
    "gosub", "gosubx",
    "case", "casex",
    "ifcantcalltop",
    "endfilter",
    # try carries the catch block offset when there is one
    "try",
})

SWITCHES: FrozenSet[str] = frozenset({
    "tableswitch", "lookupswitch", "tableswitchx", "lookupswitchx",
})

_KINDS: Dict[str, FlowKind] = {}
for _names, _kind in (
    (TERMINATORS, FlowKind.TERMINATOR),
    (UNCONDITIONALS, FlowKind.UNCONDITIONAL),
    (CONDITIONALS, FlowKind.CONDITIONAL),
    (SWITCHES, FlowKind.SWITCH),
):
    for _name in _names:
        _KINDS[_name] = _kind

_MNEMONIC = re.compile(r"\w+")
_BRANCH_TARGET = re.compile(r"^\w+\s+(\d+)")
_SWITCH_DEFAULT = re.compile(r"ffset (-?\d+)")
_SWITCH_CASE = re.compile(r": (-?\d+)$")


def mnemonic(text: str) -> str:
    match = _MNEMONIC.search(text)
    return match.group(0) if match else ""


def flow_kind(text: str) -> FlowKind:
    return _KINDS.get(mnemonic(text), FlowKind.LINEAR)


def branch_target(text: str) -> Optional[int]:
    """Absolute target address of a jump, or None when the text has none."""

    match = _BRANCH_TARGET.match(text)
    if not match:
        return None
    return int(match.group(1))


def switch_offsets(text: str) -> List[int]:
    """Relative offsets of a switch: the default first, then one per case.

    Case lines arrive as tab-prefixed continuations of the switch text.
    """

    parts = text.split("\t")
    offsets: List[int] = []
    default = _SWITCH_DEFAULT.search(parts[0])
    if default:
        offsets.append(int(default.group(1)))
    for part in parts[1:]:
        case = _SWITCH_CASE.search(part)
        if case:
            offsets.append(int(case.group(1)))
    return offsets
