"""
Demonstration CLI Tests
=======================

The walkthrough must reproduce the documented counts and ordering and end
with exactly the cycle's two cells still allocated.
"""

import json

import pytest

from ownership.demo import SECTIONS, main, run
from ownership.observability import ObservabilityEngine


def section_lines(report, name):
    return next(s.lines for s in report.sections if s.name == name)


class TestSections:

    def test_box_section(self):
        report = run(["box"])
        assert section_lines(report, "box") == ["x = 5, *Box(x) = 5"]

    def test_drop_section_order(self):
        report = run(["drop"])
        assert section_lines(report, "drop") == [
            "Dropping with data `my stuff`!",
            "CustomSmartPointer created CustomSmartPointer(data='other stuff')",
            "leaving scope",
            "Dropping with data `last stuff`!",
            "Dropping with data `other stuff`!",
        ]

    def test_rc_section_counts(self):
        report = run(["rc"])
        assert section_lines(report, "rc") == [
            "count after creating a = 1",
            "count after creating b = 2",
            "count after creating c = 3",
            "count after drop c = 2",
            "b = Cons(3, Cons(5, Cons(10, Nil)))",
        ]
        assert report.leaks.live_cells == []

    def test_shared_section(self):
        report = run(["shared"])
        assert section_lines(report, "shared") == [
            "a after = MutCons(RefCell(15), Nil)",
            "b after = MutCons(RefCell(6), MutCons(RefCell(15), Nil))",
            "c after = MutCons(RefCell(7), MutCons(RefCell(15), Nil))",
        ]
        assert report.leaks.live_cells == []

    def test_cycle_section_leaks(self):
        report = run(["cycle"])
        lines = section_lines(report, "cycle")

        assert "a initial rc count = 1" in lines
        assert "a rc count after b creation = 2" in lines
        assert "b initial rc count = 1" in lines
        assert "b rc count after changing a = 2" in lines
        assert "a rc count after changing a = 2" in lines
        assert "first four values from a = [5, 10, 5, 10]" in lines

        assert len(report.leaks.live_cells) == 2
        assert len(report.leaks.cycles) == 1
        assert sorted(report.leaks.leaked) == sorted(report.leaks.live_cells)
        assert report.metrics["live_cells"] == 2


class TestEntryPoint:

    def test_run_all_sections(self):
        engine = ObservabilityEngine()
        report = run(list(SECTIONS), engine=engine)
        assert [s.name for s in report.sections] == list(SECTIONS)
        assert report.trace == engine.trace.lines()

    def test_emit_receives_lines(self):
        emitted = []
        run(["box"], emit=emitted.append)
        assert emitted == ["## box", "x = 5, *Box(x) = 5"]

    def test_json_output(self, capsys):
        assert main(["rc", "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["sections"][0]["name"] == "rc"
        assert payload["leaks"]["cycles"] == []

    def test_text_output_reports_cycle(self, capsys):
        assert main(["cycle", "--trace"]) == 0
        out = capsys.readouterr().out
        assert "## trace" in out
        assert "[!] cycle:" in out

    def test_unknown_section_rejected(self):
        with pytest.raises(SystemExit):
            main(["nope"])
