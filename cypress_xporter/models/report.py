"""Models for mochawesome JSON reports produced by Cypress shards."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from cypress_xporter.models.base import Model


class RawError(Model):
    """Error block attached to a test node (empty for passing tests)."""

    message: str | None = None
    estack: str | None = None


class RawTest(Model):
    """A single test node as written by the reporter."""

    title: str = ""
    full_title: str = Field(default="", alias="fullTitle")
    state: str | None = None
    err: RawError | None = None
    code: str | None = None


class RawSuite(Model):
    """A suite node; top-level result entries are suites carrying a file."""

    title: str = ""
    file: str | None = None
    tests: Sequence[RawTest] = Field(default_factory=list)
    suites: Sequence["RawSuite"] = Field(default_factory=list)

    @field_validator("tests", "suites", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ReportStats(Model):
    """Statistics block of one shard report."""

    tests: int = 0
    passes: int = 0
    failures: int = 0
    pending: int = 0
    suites: int = 0
    duration: int | float = 0
    tests_registered: int = Field(default=0, alias="testsRegistered")
    skipped: int = 0
    has_skipped: bool = Field(default=False, alias="hasSkipped")
    start: datetime | None = None
    end: datetime | None = None

    @field_validator(
        "tests",
        "passes",
        "failures",
        "pending",
        "suites",
        "duration",
        "tests_registered",
        "skipped",
        mode="before",
    )
    @classmethod
    def _none_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class ShardReport(Model):
    """One shard document: ``{stats, results, meta}``."""

    stats: ReportStats
    results: Sequence[RawSuite]
    meta: dict[str, Any] | None = None

    @field_validator("results", mode="before")
    @classmethod
    def _drop_non_objects(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [entry for entry in value if isinstance(entry, dict)]
        return value


class MergedStats(ReportStats):
    """Summed statistics with derived percentages."""

    pass_percent: float = Field(default=0.0, alias="passPercent")
    pending_percent: float = Field(default=0.0, alias="pendingPercent")


class ReportBundle(Model):
    """The merged logical report of every shard."""

    stats: MergedStats
    results: Sequence[RawSuite] = Field(default_factory=list)
    meta: dict[str, Any] | None = None
