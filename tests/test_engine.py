import pytest

from tracecov.engine import CoverageEngine, FileSnapshot
from tracecov.errors import ReentrantParseError
from tracecov.events import (
    ON_LINE_UPDATE,
    ON_NEW_SCRIPT,
    ON_SCRIPT_UPDATE,
    CoverageObserver,
    EventRecorder,
)
from tracecov.lines import CoverageClass
from tracecov.remap import PrefixRemap

from trace_builders import branchy_ops, script_block, trace


def make_engine():
    engine = CoverageEngine()
    recorder = EventRecorder()
    engine.add_observer(recorder)
    return engine, recorder


def test_new_file_produces_dense_snapshot():
    engine, recorder = make_engine()
    snapshots = engine.parse_data(trace(script_block("a.js", 1, branchy_ops(2, 1))))

    assert [s.filename for s in snapshots] == ["a.js"]
    snap = snapshots[0]
    assert isinstance(snap, FileSnapshot)
    assert snap.totals == (6, 0, 0, 0)
    assert len(snap.lines) == 6
    assert snap.lines[2].counts == [2]
    assert snap.lines[3].counts == [1]
    assert snap.lines[0].start_func and not snap.lines[0].end_func
    assert snap.lines[5].end_func
    assert snap.lines[2].coverage is CoverageClass.FULL

    events = recorder.events
    assert [e.type for e in events] == [ON_NEW_SCRIPT]
    assert events[0].filename == "a.js"
    assert events[0].snapshot is engine.snapshot("a.js")


def test_unseen_lines_leave_gaps():
    engine, _ = make_engine()
    ops = [(0, 2, 1, "pop"), (1, 5, 1, "stop")]
    snap = engine.parse_data(trace(script_block("a.js", 2, ops)))[0]
    assert snap.lines[0] is None
    assert snap.lines[2] is None
    assert snap.lines[1].coverage is CoverageClass.FULL
    assert snap.lines[4].end_func


def test_reparsing_identical_dump_emits_nothing():
    engine, recorder = make_engine()
    text = trace(script_block("a.js", 1, branchy_ops(2, 1)), script_block("b.js", 1, branchy_ops(0, 3)))
    engine.parse_data(text)
    recorder.drain()
    engine.parse_data(text)
    assert recorder.events == []


def test_changed_line_reports_zero_based_index_and_new_totals():
    engine, recorder = make_engine()
    engine.parse_data(trace(script_block("a.js", 1, branchy_ops(0, 1))))
    assert engine.snapshot("a.js").totals == (5, 0, 1, 0)
    recorder.drain()

    engine.parse_data(trace(script_block("a.js", 1, branchy_ops(4, 1))))
    events = recorder.events
    assert [e.type for e in events] == [ON_LINE_UPDATE] * 5 + [ON_SCRIPT_UPDATE]
    by_line = {e.line: e.data.counts for e in events if e.type == ON_LINE_UPDATE}
    # source line 4 kept its count; the rest report index = line - 1
    assert by_line == {0: [5], 1: [5], 2: [4], 4: [5], 5: [5]}
    snap = engine.snapshot("a.js")
    assert snap.totals == (6, 0, 0, 0)
    assert events[-1].snapshot is snap
    assert snap.lines[2].counts == [4]


def test_lines_new_to_a_known_file_report_one_based_line():
    engine, recorder = make_engine()
    first = script_block("a.js", 1, [(0, 1, 1, "pop"), (1, 2, 1, "stop")])
    engine.parse_data(trace(first))
    recorder.drain()

    second = script_block("a.js", 4, [(0, 4, 0, "pop"), (1, 5, 0, "stop")])
    engine.parse_data(trace(first, second))
    line_events = recorder.of_type(ON_LINE_UPDATE)
    assert [(e.line, e.data.coverage) for e in line_events] == [
        (4, CoverageClass.NONE),
        (5, CoverageClass.NONE),
    ]
    snap = engine.snapshot("a.js")
    assert snap.lines[3].start_func
    assert snap.totals == (2, 0, 2, 0)
    assert recorder.of_type(ON_SCRIPT_UPDATE)[0].snapshot is snap


def test_scripts_missing_from_later_dumps_keep_their_lines():
    engine, recorder = make_engine()
    outer = script_block("a.js", 1, [(0, 1, 1, "pop"), (1, 2, 1, "stop")])
    inner = script_block("a.js", 10, [(0, 10, 0, "pop"), (1, 11, 0, "stop")])
    engine.parse_data(trace(outer, inner))
    recorder.drain()

    engine.parse_data(trace(outer))
    assert recorder.events == []
    snap = engine.snapshot("a.js")
    assert snap.totals == (2, 0, 2, 0)
    assert snap.lines[9].coverage is CoverageClass.NONE


def test_files_are_reported_in_name_order():
    engine, recorder = make_engine()
    text = trace(
        script_block("z.js", 1, [(0, 1, 1, "stop")]),
        script_block("a.js", 1, [(0, 1, 1, "stop")]),
        script_block("m.js", 1, [(0, 1, 1, "stop")]),
    )
    snapshots = engine.parse_data(text)
    assert [e.filename for e in recorder.events] == ["a.js", "m.js", "z.js"]
    assert [s.filename for s in snapshots] == ["a.js", "m.js", "z.js"]


def test_repeated_dump_in_one_trace_sums_counts():
    engine, _ = make_engine()
    ops = [(0, 1, 3, "pop"), (1, 2, 3, "stop")]
    again = [(0, 1, 2, "pop"), (1, 2, 2, "stop")]
    snap = engine.parse_data(trace(script_block("a.js", 1, ops), script_block("a.js", 1, again)))[0]
    assert snap.lines[0].counts == [5]
    assert snap.lines[1].counts == [5]


def test_dead_and_insignificant_lines():
    engine, _ = make_engine()
    ops = [(0, 1, 1, "return"), (1, 2, 0, "pop"), (2, 3, 0, "stop")]
    snap = engine.parse_data(trace(script_block("a.js", 1, ops)))[0]
    assert snap.lines[1].coverage is CoverageClass.DEAD
    assert snap.lines[2].coverage is CoverageClass.INSIGNIFICANT
    assert snap.lines[2].counts == []
    assert snap.totals == (1, 0, 0, 1)


def test_observers_without_handlers_are_skipped_and_order_is_kept():
    engine = CoverageEngine()
    calls = []

    class NewOnly:
        def on_new_script(self, filename, snapshot):
            calls.append(("new-only", filename))

    class Silent:
        pass

    class Full(CoverageObserver):
        def on_new_script(self, filename, snapshot):
            calls.append(("full", filename))

    engine.add_observer(NewOnly())
    engine.add_observer(Silent())
    engine.add_observer(Full())
    engine.parse_data(trace(script_block("a.js", 1, [(0, 1, 1, "stop")])))
    assert calls == [("new-only", "a.js"), ("full", "a.js")]


def test_remove_observer_uses_identity():
    engine = CoverageEngine()

    class Counter:
        def __init__(self):
            self.seen = 0

        def __eq__(self, other):
            return True

        __hash__ = object.__hash__

        def on_new_script(self, filename, snapshot):
            self.seen += 1

    kept, removed = Counter(), Counter()
    engine.add_observer(kept)
    engine.add_observer(removed)
    engine.remove_observer(removed)
    engine.remove_observer(Counter())
    engine.parse_data(trace(script_block("a.js", 1, [(0, 1, 1, "stop")])))
    assert (kept.seen, removed.seen) == (1, 0)


def test_reentrant_parse_is_rejected():
    engine = CoverageEngine()
    text = trace(script_block("a.js", 1, [(0, 1, 1, "stop")]))
    errors = []

    class Reentrant:
        def on_new_script(self, filename, snapshot):
            try:
                engine.parse_data(text)
            except ReentrantParseError as exc:
                errors.append(exc)

    engine.add_observer(Reentrant())
    engine.parse_data(text)
    assert len(errors) == 1
    # the guard is released once the outer parse finishes
    engine.parse_data(trace(script_block("b.js", 1, [(0, 1, 1, "stop")])))
    assert engine.snapshot("b.js") is not None


def test_observer_errors_propagate_and_release_guard():
    engine = CoverageEngine()

    class Broken:
        def on_new_script(self, filename, snapshot):
            raise KeyError(filename)

    broken = Broken()
    engine.add_observer(broken)
    with pytest.raises(KeyError):
        engine.parse_data(trace(script_block("a.js", 1, [(0, 1, 1, "stop")])))
    engine.remove_observer(broken)
    engine.parse_data(trace(script_block("b.js", 1, [(0, 1, 1, "stop")])))
    assert engine.snapshot("b.js") is not None


def test_remap_is_applied_to_files_and_lines():
    engine = CoverageEngine(PrefixRemap("gen/=src/", {"src/a.js": 10}))
    snap = engine.parse_data(trace(script_block("gen/a.js", 1, [(0, 1, 1, "pop"), (1, 2, 1, "stop")])))[0]
    assert snap.filename == "src/a.js"
    assert len(snap.lines) == 12
    assert snap.lines[10].start_func
    assert snap.lines[11].end_func


def test_garbage_input_is_tolerated():
    engine, recorder = make_engine()
    assert engine.parse_data("not a trace\n--- END SCRIPT ---\n\x00\n") == []
    assert recorder.events == []


def test_lines_shifted_below_one_do_not_skew_totals():
    recorder = EventRecorder()
    text = trace(script_block("a.js", 1, [(0, 1, 1, "pop"), (1, 2, 1, "stop")]))
    remapped = CoverageEngine(PrefixRemap(None, {"a.js": -1}))
    remapped.add_observer(recorder)
    snap = remapped.parse_data(text)[0]
    assert len(snap.lines) == 1
    assert snap.totals == (1, 0, 0, 0)
    recorder.drain()
    remapped.parse_data(text)
    assert recorder.events == []
