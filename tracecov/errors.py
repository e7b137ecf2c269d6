"""Exception types raised by tracecov.

Malformed trace text is tolerated silently; these errors only surface when a
caller breaks one of the engine's contracts.
"""

from __future__ import annotations


class TraceCoverageError(RuntimeError):
    """Base class for tracecov errors."""


class SignatureMismatchError(TraceCoverageError):
    """Raised when counts are merged between structurally different scripts."""


class UnresolvedTargetError(TraceCoverageError):
    """Raised when a branch or switch target is not an address of its script."""

    def __init__(self, script_name: str, source_address: int, target_address: int) -> None:
        super().__init__(
            f"{script_name}: instruction at {source_address} targets unknown address {target_address}"
        )
        self.script_name = script_name
        self.source_address = source_address
        self.target_address = target_address


class ReentrantParseError(TraceCoverageError):
    """Raised when parse_data is called from inside an observer callback."""
