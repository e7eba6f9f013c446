"""Models for run orchestration results and local summaries."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from cypress_xporter.models.outcome import TestOutcome

type GroupStatus = Literal["closed", "reported", "skipped"]


@dataclass(frozen=True, kw_only=True)
class GroupOutcome:
    """Terminal state of one run group.

    ``reported`` means results were posted but the run was left open, either
    by design (adhoc runs) or because closing it failed.
    """

    project_id: int | None
    suite_id: int | None
    status: GroupStatus
    run_id: int | None = None
    posted: int = 0
    dropped_case_ids: Sequence[int] = field(default_factory=tuple)
    message: str | None = None


@dataclass(frozen=True, kw_only=True)
class ExecutionSummary:
    """Local totals computed from flattened outcomes."""

    total: int
    passed: int
    failed: int
    pending: int
    skipped: int
    unknown: int

    @property
    def pass_percent(self) -> float:
        if not self.total:
            return 0.0
        return self.passed / self.total * 100

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[TestOutcome]) -> "ExecutionSummary":
        """Count outcomes by state."""
        counts = {"passed": 0, "failed": 0, "pending": 0, "skipped": 0, "unknown": 0}
        for outcome in outcomes:
            counts[outcome.state] += 1
        return cls(total=len(outcomes), **counts)
