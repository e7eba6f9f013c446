"""Per-execution state shared by the validator and the run strategies."""

from collections.abc import Set
from dataclasses import dataclass, field
from datetime import datetime

type GroupKey = tuple[int | None, int | None]


@dataclass(frozen=True, kw_only=True)
class CaseValidation:
    """Cached answer of the catalog for one case id."""

    exists: bool
    suite_id: int | None = None


@dataclass(frozen=True, kw_only=True)
class SessionRun:
    """A run created during the session and the cases it was created with."""

    run_id: int
    case_ids: Set[int]


@dataclass(kw_only=True)
class RunSession:
    """State owned by the caller for one execution.

    ``runs`` maps (project_id, suite_id) to the run created for it, so a
    group never gets a second run. ``validations`` caches catalog lookups so
    a case id is only ever resolved once. Both live only as long as the
    session object.
    """

    started_at: datetime = field(default_factory=datetime.now)
    runs: dict[GroupKey, SessionRun] = field(default_factory=dict)
    validations: dict[int, CaseValidation] = field(default_factory=dict)
