"""
runner.py - Concurrent executor and TAP reporter

Runs every test unit at once on the current event loop and reports results
using the TAP protocol (https://testanything.org/). Units finish in any
order but are always reported in the order they were submitted: the runner
awaits the tasks one after another, so a result is printed as soon as its
unit and every unit before it have finished.

A unit that raises is recorded as failed with its exception chain rendered
as TAP comments. It never stops the other units or the runner.
"""

from __future__ import annotations
import asyncio
import sys
from dataclasses import dataclass
from typing import AsyncIterator, Coroutine, Iterable, List, Optional, TextIO, Tuple

from .core import LedgerError, Outcome, OutcomeStatus, TAP_VERSION
from .env import LedgerTransaction
from .suite import SuiteConfig, Test, test_suite


@dataclass(frozen=True, slots=True)
class TestReport:
    """
    Terminal result of one test unit.

    Attributes:
        index: 1-based submission position
        name: Test name
        status: PASSED, SKIPPED or FAILED
        reason: Skip reason, if skipped
        diagnostic: Rendered error chain, if failed
    """
    index: int
    name: str
    status: OutcomeStatus
    reason: Optional[str] = None
    diagnostic: Tuple[str, ...] = ()

    __test__ = False

    @property
    def ok(self) -> bool:
        return self.status is not OutcomeStatus.FAILED

    def tap_lines(self) -> List[str]:
        if self.status is OutcomeStatus.PASSED:
            return [f"ok {self.index} - {self.name}"]
        if self.status is OutcomeStatus.SKIPPED:
            return [f"ok {self.index} - {self.name} # SKIP {self.reason}"]
        lines = [f"# {line}" for line in self.diagnostic]
        lines.append(f"not ok {self.index} - {self.name}")
        return lines


# ============================================================================
# ERROR RENDERING
# ============================================================================

def _describe(exc: BaseException) -> str:
    message = str(exc)
    if isinstance(exc, LedgerError):
        return message or type(exc).__name__
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


def _next_in_chain(exc: BaseException) -> Optional[BaseException]:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__


def format_error(exc: BaseException) -> List[str]:
    """
    Render an exception and its causes, outermost first.

    Example:
        icrc1:fee metadata entry does not match the icrc1_fee endpoint

        Caused by:
            Nat(10) ≠ Nat(20)
    """
    lines = _describe(exc).splitlines()

    causes: List[BaseException] = []
    cause = _next_in_chain(exc)
    while cause is not None and cause not in causes:
        causes.append(cause)
        cause = _next_in_chain(cause)
    if not causes:
        return lines

    lines += ["", "Caused by:"]
    for i, cause in enumerate(causes):
        prefix = f"    {i}: " if len(causes) > 1 else "    "
        text = _describe(cause).splitlines() or [""]
        lines.append(prefix + text[0])
        lines.extend(" " * len(prefix) + rest for rest in text[1:])
    return lines


# ============================================================================
# EXECUTION
# ============================================================================

async def _settle(index: int, name: str, task: asyncio.Task) -> TestReport:
    try:
        outcome = await task
    except Exception as e:
        return TestReport(index, name, OutcomeStatus.FAILED, diagnostic=tuple(format_error(e)))
    if not isinstance(outcome, Outcome):
        return TestReport(
            index, name, OutcomeStatus.FAILED,
            diagnostic=(f"test returned {outcome!r} instead of an Outcome",),
        )
    return TestReport(index, name, outcome.status, outcome.reason)


def _take_all(tests: List[Test]) -> List[Tuple[str, Coroutine]]:
    """Check every unit can run, then consume them all. Raises before anything is started."""
    started = [t.name for t in tests if t.started]
    if started:
        raise RuntimeError(f"Tests already started: {', '.join(started)}")
    if len({id(t) for t in tests}) != len(tests):
        repeated = sorted({t.name for t in tests if sum(u is t for u in tests) > 1})
        raise RuntimeError(f"Tests submitted more than once: {', '.join(repeated)}")
    return [(t.name, t.take()) for t in tests]


async def _ordered_reports(actions: List[Tuple[str, Coroutine]]) -> AsyncIterator[TestReport]:
    """Launch every unit immediately, then yield reports in submission order."""
    tasks = [(name, asyncio.create_task(action, name=name)) for name, action in actions]
    for index, (name, task) in enumerate(tasks, start=1):
        yield await _settle(index, name, task)


def _emit(out: TextIO, line: str) -> None:
    print(line, file=out, flush=True)


async def execute_tests(tests: Iterable[Test], out: Optional[TextIO] = None) -> bool:
    """
    Execute the list of tests concurrently and print results using TAP.

    Args:
        tests: Units to run; each is consumed
        out: Stream for the TAP output (default: sys.stdout)

    Returns:
        True if no test failed. Skipped tests count as success.

    Raises:
        RuntimeError: If a unit was already started or is submitted twice.
                      Nothing is printed and no unit is consumed.
    """
    out = out or sys.stdout
    actions = _take_all(list(tests))

    _emit(out, f"TAP version {TAP_VERSION}")
    _emit(out, f"1..{len(actions)}")

    success = True
    async for report in _ordered_reports(actions):
        for line in report.tap_lines():
            _emit(out, line)
        success = success and report.ok
    return success


async def collect_reports(tests: Iterable[Test]) -> List[TestReport]:
    """Execute tests concurrently and return their reports in submission order, printing nothing."""
    return [report async for report in _ordered_reports(_take_all(list(tests)))]


def run_suite(
    env: LedgerTransaction,
    config: Optional[SuiteConfig] = None,
    out: Optional[TextIO] = None,
) -> bool:
    """Run the whole conformance suite against `env` on a fresh event loop."""
    return asyncio.run(execute_tests(test_suite(env, config), out))
