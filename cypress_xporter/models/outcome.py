"""Models for flattened test outcomes."""

from dataclasses import dataclass
from typing import Literal

type TestState = Literal["passed", "failed", "pending", "skipped", "unknown"]

KNOWN_STATES: frozenset[str] = frozenset({"passed", "failed", "pending", "skipped"})


@dataclass(frozen=True, kw_only=True)
class TestOutcome:
    """One observed execution of one test.

    Routing identifiers are resolved by the flattener. A record without a
    case_id is kept for local summaries but never sent to the catalog.
    """

    __test__ = False

    title: str
    full_title: str
    state: TestState
    file: str
    error_message: str | None = None
    body: str = ""
    case_id: int | None = None
    suite_id: int | None = None
    project_id: int | None = None
    issue_ref: str | None = None

    @property
    def is_reportable(self) -> bool:
        """Whether the outcome can be addressed in the catalog."""
        return self.case_id is not None

    @property
    def passed(self) -> bool:
        return self.state == "passed"

    @property
    def failed(self) -> bool:
        return self.state == "failed"
