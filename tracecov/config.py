"""Trace grammar settings for tracecov."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Tuple

DEFAULT_SENTINEL_HEADERS: Tuple[str, ...] = (
    "--- SCRIPT (null):0 ---",  # interpreter bootstrap script
    "--- SCRIPT :0 ---",
    "--- SCRIPT -e:1 ---",  # inline -e eval
)


@dataclass(frozen=True)
class TraceConfig:
    sentinel_headers: Tuple[str, ...] = DEFAULT_SENTINEL_HEADERS
    entry_marker: str = "main:"
    placeholder_mnemonics: Tuple[str, ...] = ("lambda", "deflocalfun")
    halt_mnemonic: str = "stop"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TraceConfig":
        """Build a config from a JSON-style mapping, rejecting unknown keys."""

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown trace config keys: {', '.join(unknown)}")
        values = {}
        for key, value in data.items():
            if key in ("sentinel_headers", "placeholder_mnemonics"):
                if isinstance(value, str) or not isinstance(value, (list, tuple)):
                    raise ValueError(f"{key} must be a list of strings")
                values[key] = tuple(str(item) for item in value)
            else:
                if not isinstance(value, str):
                    raise ValueError(f"{key} must be a string")
                values[key] = value
        return cls(**values)

    @classmethod
    def from_file(cls, path: Path) -> "TraceConfig":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("trace config file must contain a JSON object")
        return cls.from_mapping(data)
