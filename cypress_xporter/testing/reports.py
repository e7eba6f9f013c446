"""Payload helpers for mochawesome shard reports in tests."""

from collections.abc import Sequence
from typing import Any


def mocha_test(
    title: str,
    *,
    state: str | None = "passed",
    full_title: str | None = None,
    error: str | None = None,
    code: str = "cy.visit('/')",
) -> dict[str, Any]:
    """Create a test node as written by mochawesome."""
    node: dict[str, Any] = {
        "title": title,
        "fullTitle": full_title or title,
        "timedOut": False,
        "duration": 120,
        "pass": state == "passed",
        "fail": state == "failed",
        "pending": state == "pending",
        "code": code,
        "err": {"message": error, "estack": f"Error: {error}"} if error else {},
        "uuid": f"uuid-{title}",
        "isHook": False,
        "skipped": state == "skipped",
    }
    if state is not None:
        node["state"] = state
    return node


def mocha_suite(
    title: str = "",
    *,
    tests: Sequence[dict[str, Any]] = (),
    suites: Sequence[dict[str, Any]] = (),
    file: str | None = None,
) -> dict[str, Any]:
    """Create a suite node; with ``file`` it doubles as a result entry."""
    node: dict[str, Any] = {
        "uuid": f"uuid-{title}",
        "title": title,
        "fullFile": "",
        "tests": list(tests),
        "suites": list(suites),
        "root": file is not None,
        "rootEmpty": False,
        "_timeout": 2000,
    }
    if file is not None:
        node["file"] = file
    return node


def shard_report(
    results: Sequence[dict[str, Any]] = (),
    *,
    tests: int = 0,
    passes: int = 0,
    failures: int = 0,
    pending: int = 0,
    skipped: int = 0,
    suites: int = 1,
    duration: int = 1000,
    has_skipped: bool = False,
    start: str = "2099-01-01T12:00:00.000Z",
    end: str = "2099-01-01T12:01:00.000Z",
    meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create a shard report document."""
    return {
        "stats": {
            "suites": suites,
            "tests": tests,
            "passes": passes,
            "pending": pending,
            "failures": failures,
            "start": start,
            "end": end,
            "duration": duration,
            "testsRegistered": tests,
            "passPercent": passes / tests * 100 if tests else 0,
            "pendingPercent": pending / tests * 100 if tests else 0,
            "other": 0,
            "hasOther": False,
            "skipped": skipped,
            "hasSkipped": has_skipped,
        },
        "results": list(results),
        "meta": meta
        if meta is not None
        else {"mocha": {"version": "7.0.1"}, "mochawesome": {"version": "7.1.3"}},
    }
