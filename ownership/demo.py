"""
Ownership Demonstration CLI
===========================

Walks through each container in a fixed sequence and prints what happens.

SECTIONS:
- box:     Box indirection and transparent access
- drop:    destruction hooks, early drop and reverse-order scope exit
- rc:      shared ownership and strong counts
- shared:  multiple owners of mutable data (Rc + RefCell)
- cycle:   a reference cycle that leaks

USAGE:
    python -m ownership.demo [SECTION] [--trace] [--json]
"""
import argparse
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel

from .config import OwnershipConfig
from .core import Box, Drop, Rc, Scope, drop
from .lists import (
    Cons, Nil, MutCons, shared_value, cyc_cons, link, walk,
)
from .observability import ObservabilityEngine, use_engine
from .observability.leaks import LeakInspector


Emit = Callable[[str], None]


# =============================================================================
# REPORT MODELS
# =============================================================================

class SectionReport(BaseModel):
    name: str
    lines: List[str]


class LeakSummary(BaseModel):
    live_cells: List[str]
    strong_counts: Dict[str, int]
    cycles: List[List[str]]
    leaked: List[str]


class DemoReport(BaseModel):
    sections: List[SectionReport]
    metrics: Dict[str, float]
    leaks: LeakSummary
    trace: List[str] = []


# =============================================================================
# SECTIONS
# =============================================================================

@dataclass
class CustomSmartPointer(Drop):
    data: str
    announce: Emit = field(default=print, repr=False, compare=False)

    def drop(self) -> None:
        self.announce(f"Dropping with data `{self.data}`!")


def run_box(emit: Emit):
    x = 5
    with Box(x) as y:
        emit(f"x = {x}, *Box(x) = {y.deref()}")


def run_drop(emit: Emit):
    with Scope("main") as scope:
        a = scope.own(CustomSmartPointer("my stuff", announce=emit))
        b = scope.own(CustomSmartPointer("other stuff", announce=emit))
        drop(a)
        emit(f"CustomSmartPointer created {b!r}")
        scope.own(CustomSmartPointer("last stuff", announce=emit))
        emit("leaving scope")


def run_rc(emit: Emit):
    with Scope("rc") as scope:
        a = scope.own(Rc(Cons(5, Rc(Cons(10, Rc(Nil()))))))
        emit(f"count after creating a = {Rc.strong_count(a)}")

        b = scope.own(Cons(3, a.clone()))
        emit(f"count after creating b = {Rc.strong_count(a)}")

        with Scope("inner") as inner:
            inner.own(Cons(4, a.clone()))
            emit(f"count after creating c = {Rc.strong_count(a)}")

        emit(f"count after drop c = {Rc.strong_count(a)}")
        emit(f"b = {b!r}")


def run_shared(emit: Emit):
    with Scope("shared") as scope:
        value = scope.own(shared_value(5))
        a = scope.own(Rc(MutCons(value.clone(), Rc(Nil()))))
        b = scope.own(MutCons(shared_value(6), a.clone()))
        c = scope.own(MutCons(shared_value(7), a.clone()))

        with value.deref().borrow_mut() as guard:
            guard.value += 10

        emit(f"a after = {a.deref()!r}")
        emit(f"b after = {b!r}")
        emit(f"c after = {c!r}")


def run_cycle(emit: Emit):
    with Scope("cycle") as scope:
        a = scope.own(cyc_cons(5, Rc(Nil())))
        emit(f"a initial rc count = {Rc.strong_count(a)}")
        emit(f"a next item = {a.deref().tail()!r}")

        b = scope.own(cyc_cons(10, a.clone()))
        emit(f"a rc count after b creation = {Rc.strong_count(a)}")
        emit(f"b initial rc count = {Rc.strong_count(b)}")
        emit(f"b next item = {b.deref().tail()!r}")

        link(a, b)
        emit(f"b rc count after changing a = {Rc.strong_count(b)}")
        emit(f"a rc count after changing a = {Rc.strong_count(a)}")
        emit(f"first four values from a = {walk(a, 4)}")
    emit("outside handles dropped; cycle cells remain allocated")


SECTIONS: Dict[str, Callable[[Emit], None]] = {
    "box": run_box,
    "drop": run_drop,
    "rc": run_rc,
    "shared": run_shared,
    "cycle": run_cycle,
}


# =============================================================================
# ENTRY POINT
# =============================================================================

def run(
    names: List[str],
    engine: Optional[ObservabilityEngine] = None,
    emit: Optional[Emit] = None
) -> DemoReport:
    """Run the named sections against `engine` and build the report."""
    engine = engine or ObservabilityEngine()
    sections: List[SectionReport] = []

    with use_engine(engine):
        for name in names:
            lines: List[str] = []

            def collect(line: str, _lines=lines):
                _lines.append(line)
                if emit:
                    emit(line)

            if emit:
                emit(f"## {name}")
            SECTIONS[name](collect)
            sections.append(SectionReport(name=name, lines=lines))

        leak_report = LeakInspector(engine).inspect()

    return DemoReport(
        sections=sections,
        metrics=engine.metrics.snapshot(),
        leaks=LeakSummary(
            live_cells=list(leak_report.live_cells),
            strong_counts=dict(leak_report.strong_counts),
            cycles=[list(c) for c in leak_report.cycles],
            leaked=list(leak_report.leaked),
        ),
        trace=engine.trace.lines(),
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Ownership container walkthrough")
    parser.add_argument(
        "section",
        nargs="?",
        default="all",
        choices=["all"] + list(SECTIONS),
        help="Section to run (default: all)"
    )
    parser.add_argument("--trace", action="store_true", help="Print the lifecycle trace")
    parser.add_argument("--json", action="store_true", help="Print a JSON report instead")

    args = parser.parse_args(argv)
    names = list(SECTIONS) if args.section == "all" else [args.section]

    engine = ObservabilityEngine(OwnershipConfig.from_env())
    report = run(names, engine=engine, emit=None if args.json else print)

    if args.json:
        print(report.model_dump_json(indent=2))
        return 0

    if args.trace:
        print("\n## trace")
        for line in report.trace:
            print(line)

    print(f"\n[*] live cells: {len(report.leaks.live_cells)}")
    for cycle in report.leaks.cycles:
        print(f"[!] cycle: {' -> '.join(cycle + cycle[:1])}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
