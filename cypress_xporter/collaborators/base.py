"""Interfaces of the optional reporting collaborators."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from cypress_xporter.models.outcome import TestOutcome
from cypress_xporter.models.result import ExecutionSummary, GroupOutcome


class IssueTracker(ABC):
    """Files issues for failed tests (e.g. Jira bugs)."""

    @abstractmethod
    async def report_failures(
        self, outcomes: Sequence[TestOutcome]
    ) -> Sequence[str | None]:
        """Create or find an issue per failed outcome.

        Args:
            outcomes: Failed outcomes, deduplicated by title

        Returns:
            One opaque issue reference per outcome, in input order; None when
            no issue was created for that outcome

        """


class DashboardPublisher(ABC):
    """Publishes a summary page (e.g. a Confluence test log)."""

    @abstractmethod
    async def publish(
        self,
        summary: ExecutionSummary,
        run_summary: Sequence[GroupOutcome] | None = None,
        failures: Sequence[TestOutcome] = (),
    ) -> None:
        """Publish aggregate counts and, when available, the run outcomes.

        ``failures`` are the failed outcomes, each carrying the issue reference
        filed for it, if any.
        """
