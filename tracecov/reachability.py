"""Static reachability over a script's instruction sequence.

The walk always starts at position 0, not at the recorded entry index:
instructions ahead of ``main:`` (variable declarations and the like) fall
through into the real entry and must stay reachable. Each walk runs forward
over linear instructions and stops at the first non-linear one, whose
successors are queued as new walks. An instruction that is already
reachable ends a walk, which bounds the work on looping code.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from .errors import UnresolvedTargetError
from .opcodes import FlowKind, branch_target, flow_kind, switch_offsets

if TYPE_CHECKING:
    from .script import Script

logger = logging.getLogger(__name__)


def _resolve(script: "Script", source_address: int, target_address: int) -> int:
    index = script.address_index.get(target_address)
    if index is None:
        raise UnresolvedTargetError(script.name, source_address, target_address)
    return index


def successors(script: "Script", index: int) -> List[int]:
    """Positions control can move to from the non-linear instruction at ``index``."""

    ins = script.instructions[index]
    kind = flow_kind(ins.text)
    if kind is FlowKind.TERMINATOR:
        return []
    if kind is FlowKind.UNCONDITIONAL:
        target = branch_target(ins.text)
        if target is None:
            logger.debug("%s: %r at %d has no jump target", script.name, ins.text, ins.address)
            return []
        return [_resolve(script, ins.address, target)]
    if kind is FlowKind.CONDITIONAL:
        result = [index + 1]
        target = branch_target(ins.text)
        # try without a catch offset only falls through
        if target is not None:
            result.append(_resolve(script, ins.address, target))
        return result
    if kind is FlowKind.SWITCH:
        # switch offsets are relative to the switch itself
        return [
            _resolve(script, ins.address, ins.address + offset)
            for offset in switch_offsets(ins.text)
        ]
    return [index + 1]


def analyze(script: "Script") -> None:
    """Mark reachable and fall-through instructions of ``script`` in place."""

    instructions = script.instructions
    total = len(instructions)
    visited = [ins.reachable for ins in instructions]
    pending: List[int] = [0]

    while pending:
        index = pending.pop()
        if index >= total:
            continue
        instructions[index].entry_target = True
        while index < total and not visited[index]:
            ins = instructions[index]
            visited[index] = True
            ins.reachable = True
            if flow_kind(ins.text) is not FlowKind.LINEAR:
                # push in reverse so the fall-through successor is walked first
                pending.extend(reversed(successors(script, index)))
                break
            ins.falls_through = True
            index += 1
