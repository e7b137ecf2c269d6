import json
from pathlib import Path

import pytest

from tracecov import cli

from trace_builders import branchy_ops, script_block, trace


def write_trace(path: Path, *blocks) -> Path:
    path.write_text(trace(*blocks), encoding="utf-8")
    return path


def test_summary_output(tmp_path, capsys):
    dump = write_trace(tmp_path / "dump1.txt", script_block("a.js", 1, branchy_ops(0, 1)))
    assert cli.main([str(dump)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[1].split()[:5] == ["a.js", "5", "0", "1", "0"]


def test_successive_dumps_accumulate(tmp_path, capsys):
    first = write_trace(tmp_path / "dump1.txt", script_block("a.js", 1, branchy_ops(0, 1)))
    second = write_trace(tmp_path / "dump2.txt", script_block("a.js", 1, branchy_ops(2, 1)))
    assert cli.main(["--json", str(first), str(second)]) == 0
    records = json.loads(capsys.readouterr().out)
    assert [r["filename"] for r in records] == ["a.js"]
    assert records[0]["covered"] == 6
    assert records[0]["lines"][2]["counts"] == [2]


def test_prefix_map_option(tmp_path, capsys):
    dump = write_trace(tmp_path / "dump.txt", script_block("/out/a.js", 1, [(0, 1, 1, "stop")]))
    assert cli.main(["--json", "--prefix-map", "/out=/src", str(dump)]) == 0
    records = json.loads(capsys.readouterr().out)
    assert records[0]["filename"] == "/src/a.js"


def test_config_file_option(tmp_path, capsys):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"sentinel_headers": ["--- SCRIPT a.js:1 ---"]}), encoding="utf-8")
    dump = write_trace(tmp_path / "dump.txt", script_block("a.js", 1, [(0, 1, 1, "stop")]))
    assert cli.main(["--json", "--config", str(config), str(dump)]) == 0
    assert json.loads(capsys.readouterr().out) == []


def test_missing_trace_file_fails(tmp_path):
    assert cli.main([str(tmp_path / "missing.txt")]) == 1


def test_bad_config_fails(tmp_path):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"nope": True}), encoding="utf-8")
    dump = write_trace(tmp_path / "dump.txt", script_block("a.js", 1, [(0, 1, 1, "stop")]))
    assert cli.main(["--config", str(config), str(dump)]) == 1


def test_trace_required_without_shell():
    with pytest.raises(SystemExit):
        cli.main([])
