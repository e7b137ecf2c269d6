"""Interactive shell for loading successive trace dumps."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Callable, Dict, List, Optional, TextIO

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from .engine import CoverageEngine
from .errors import TraceCoverageError
from .events import EventRecorder, describe_event
from .report import format_lines, format_summary

LOGGER = logging.getLogger("tracecov.repl")

HELP_TEXT = """\
load PATH   parse a trace dump and list the changes it caused
files       list files seen so far
show FILE   per-line coverage of FILE
summary     per-file coverage totals
help        this text
quit        leave the shell"""


class CoverageShell:
    """prompt_toolkit shell around a :class:`CoverageEngine`."""

    def __init__(self, engine: Optional[CoverageEngine] = None, *, out: Optional[TextIO] = None) -> None:
        self.engine = engine or CoverageEngine()
        self.out = out
        self.recorder = EventRecorder()
        self.engine.add_observer(self.recorder)
        self._commands: Dict[str, Callable[[List[str]], None]] = {
            "load": self._cmd_load,
            "files": self._cmd_files,
            "show": self._cmd_show,
            "summary": self._cmd_summary,
            "help": self._cmd_help,
        }

    def _print(self, text: str) -> None:
        print(text, file=self.out)

    def completer(self) -> WordCompleter:
        words = sorted(set(self._commands) | {"quit", "exit"} | set(self.engine.filenames))
        return WordCompleter(words, sentence=True)

    def run(self) -> int:
        session = PromptSession("tracecov> ", history=InMemoryHistory())
        while True:
            try:
                with patch_stdout():
                    line = session.prompt(completer=self.completer())
            except (EOFError, KeyboardInterrupt):
                self._print("")
                return 0
            if not self.execute(line):
                return 0

    def execute(self, line: str) -> bool:
        """Run one command line; returns False when the shell should exit."""

        stripped = line.strip()
        if not stripped:
            return True
        try:
            argv = shlex.split(stripped)
        except ValueError as exc:
            self._print(f"Parse error: {exc}")
            return True
        name, *args = argv
        if name in ("quit", "exit"):
            return False
        command = self._commands.get(name)
        if command is None:
            self._print(f"Unknown command: {name}")
            return True
        try:
            command(args)
        except (OSError, TraceCoverageError) as exc:
            LOGGER.debug("command %s failed", name, exc_info=True)
            self._print(f"Command '{name}' failed: {exc}")
        return True

    def _cmd_load(self, args: List[str]) -> None:
        if len(args) != 1:
            self._print("usage: load PATH")
            return
        text = Path(args[0]).read_text(encoding="utf-8", errors="replace")
        self.recorder.drain()
        self.engine.parse_data(text)
        events = self.recorder.drain()
        if not events:
            self._print("no changes")
        for event in events:
            self._print(f"{event.type}: {describe_event(event)}")

    def _cmd_files(self, args: List[str]) -> None:
        for name in sorted(self.engine.filenames):
            self._print(name)

    def _cmd_show(self, args: List[str]) -> None:
        if len(args) != 1:
            self._print("usage: show FILE")
            return
        snapshot = self.engine.snapshot(args[0])
        if snapshot is None:
            self._print(f"No coverage for {args[0]}")
            return
        self._print(format_lines(snapshot))

    def _cmd_summary(self, args: List[str]) -> None:
        self._print(format_summary(self.engine.snapshots()))

    def _cmd_help(self, args: List[str]) -> None:
        self._print(HELP_TEXT)
