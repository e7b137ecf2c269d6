from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple


def _parse_prefix_map(mapping: Optional[str]) -> Dict[str, str]:
    """Split ``traced=source[:traced=source...]`` into a traced-to-source prefix dict.

    Entries without ``=`` or with an empty traced prefix are skipped; an empty
    source prefix stands for the current directory.
    """
    if not mapping:
        return {}
    result: Dict[str, str] = {}
    for part in mapping.split(":"):
        if "=" not in part:
            continue
        old, new = part.split("=", 1)
        if old == "":
            continue
        result[old] = new or "."
    return result


class PrefixRemap:
    """
    Remap hook translating trace coordinates back to source coordinates.

    Filenames are rewritten through the longest matching prefix of the
    prefix map; lines are shifted by the offset registered for the rewritten
    filename (e.g. the number of lines a preprocessor prepended).
    """

    def __init__(
        self,
        prefix_map: Optional[str] = None,
        line_offsets: Optional[Mapping[str, int]] = None,
    ) -> None:
        self.prefix_map = _parse_prefix_map(prefix_map)
        self.line_offsets: Dict[str, int] = {
            str(name): int(offset) for name, offset in (line_offsets or {}).items()
        }
        self._prefixes = sorted(self.prefix_map, key=len, reverse=True)

    @classmethod
    def from_file(cls, path: Path) -> "PrefixRemap":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls(
            prefix_map=data.get("prefix_map"),
            line_offsets=data.get("line_offsets") or {},
        )

    def filename(self, raw: str) -> str:
        for old in self._prefixes:
            if raw.startswith(old):
                return self.prefix_map[old] + raw[len(old) :]
        return raw

    def __call__(self, raw_filename: str, raw_line: int) -> Tuple[str, int]:
        filename = self.filename(raw_filename)
        return filename, raw_line + self.line_offsets.get(filename, 0)
