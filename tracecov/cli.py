"""tracecov CLI entry point."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List

from .config import TraceConfig
from .engine import CoverageEngine
from .errors import TraceCoverageError
from .events import EventRecorder
from .remap import PrefixRemap
from .report import encode_snapshots, format_summary

LOG = logging.getLogger("tracecov.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Line coverage from bytecode disassembly traces")
    parser.add_argument("traces", nargs="*", type=Path, help="Trace dumps, parsed in order")
    parser.add_argument("--json", action="store_true", help="Emit JSON snapshots instead of a summary")
    parser.add_argument("--config", type=Path, help="JSON file overriding trace grammar settings")
    parser.add_argument("--prefix-map", help="Rewrite traced filenames (old=new[:old=new...])")
    parser.add_argument("--remap", type=Path, help="JSON remap file (prefix_map, line_offsets)")
    parser.add_argument("--shell", action="store_true", help="Open the interactive shell after loading")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("TRACECOV_LOG", "WARNING"),
        help="Logging level (default WARNING)",
    )
    return parser


def _build_engine(args: argparse.Namespace) -> CoverageEngine:
    config = TraceConfig.from_file(args.config) if args.config else TraceConfig()
    remap = None
    if args.remap:
        remap = PrefixRemap.from_file(args.remap)
    elif args.prefix_map:
        remap = PrefixRemap(args.prefix_map)
    return CoverageEngine(remap, config=config)


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    if not args.traces and not args.shell:
        parser.error("at least one trace file is required unless --shell is given")

    try:
        engine = _build_engine(args)
    except (OSError, ValueError) as exc:
        LOG.error("invalid configuration: %s", exc)
        return 1

    engine.add_observer(EventRecorder(log_level=logging.INFO))
    for path in args.traces:
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
            engine.parse_data(text)
        except (OSError, TraceCoverageError) as exc:
            LOG.error("failed to process %s: %s", path, exc)
            return 1
        LOG.info("processed %s (%d files tracked)", path, len(engine.filenames))

    if args.shell:
        from .repl import CoverageShell

        return CoverageShell(engine).run()

    if args.json:
        json.dump(encode_snapshots(engine.snapshots()), sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        print(format_summary(engine.snapshots()))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
