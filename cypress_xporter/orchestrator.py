"""Run orchestration: group outcomes, ensure runs, post results, close runs."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from cypress_xporter.catalogs.base import REMOTE_ERRORS, CaseCatalog
from cypress_xporter.catalogs.models import CaseResult
from cypress_xporter.models.outcome import TestOutcome
from cypress_xporter.models.result import GroupOutcome, GroupStatus
from cypress_xporter.session import GroupKey, RunSession, SessionRun
from cypress_xporter.validator import CatalogValidator

log = logging.getLogger(__name__)

RUN_NAME_MARKER = "cypress/e2e/"
TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"
PASSED_COMMENT = "Test passed"


@dataclass(frozen=True, kw_only=True)
class RunGroup:
    """Reportable outcomes that belong to one remote run."""

    project_id: int | None
    suite_id: int | None
    outcomes: Sequence[TestOutcome]

    @property
    def key(self) -> GroupKey:
        return (self.project_id, self.suite_id)

    @property
    def case_ids(self) -> Sequence[int]:
        """Distinct case ids in first-seen order."""
        return list(
            dict.fromkeys(o.case_id for o in self.outcomes if o.case_id is not None)
        )


def derive_run_name(outcomes: Sequence[TestOutcome], started_at: datetime) -> str:
    """Name a run after the folders of its first located outcome.

    ``cypress/e2e/admin/users/list.cy.js`` gives ``ADMIN-USERS Automated Run
    (...)``, ``cypress/e2e/login.cy.js`` gives ``LOGIN.CY.JS Automated Run
    (...)``.
    """
    timestamp = started_at.strftime(TIMESTAMP_FORMAT)

    for outcome in outcomes:
        if not outcome.file:
            continue
        path = outcome.file.replace("\\", "/").lower()
        _, marker, rest = path.partition(RUN_NAME_MARKER)
        if not marker:
            continue

        parts = [part for part in rest.split("/") if part]
        if len(parts) >= 2:
            return f"{parts[0].upper()}-{parts[1].upper()} Automated Run ({timestamp})"
        if len(parts) == 1:
            return f"{parts[0].upper()} Automated Run ({timestamp})"

    return f"Automated Run ({timestamp})"


def build_result(outcome: TestOutcome) -> CaseResult:
    """Map an outcome onto a binary catalog result."""
    if outcome.case_id is None:
        raise ValueError(f"Outcome '{outcome.title}' has no case id")
    if outcome.passed:
        return CaseResult(case_id=outcome.case_id, passed=True, comment=PASSED_COMMENT)
    return CaseResult(
        case_id=outcome.case_id,
        passed=False,
        comment=outcome.error_message or f"Test {outcome.state}",
    )


class RunStrategy(ABC):
    """How reportable outcomes are grouped and delivered to runs."""

    @abstractmethod
    def partition(self, outcomes: Sequence[TestOutcome]) -> Sequence[RunGroup]:
        """Split reportable outcomes into run groups."""

    @abstractmethod
    async def apply(self, group: RunGroup) -> GroupOutcome:
        """Drive one group to a terminal state; never raises for remote errors."""


@dataclass(frozen=True, kw_only=True)
class NormalRunStrategy(RunStrategy):
    """Create (or reuse) one run per (project, suite), report, then close it.

    A reused run only accepts the cases it was created with; other valid ids
    are dropped for this group.
    """

    catalog: CaseCatalog
    session: RunSession

    @property
    def validator(self) -> CatalogValidator:
        return CatalogValidator(catalog=self.catalog, session=self.session)

    def partition(self, outcomes: Sequence[TestOutcome]) -> Sequence[RunGroup]:
        grouped: dict[GroupKey, list[TestOutcome]] = {}
        for outcome in outcomes:
            grouped.setdefault((outcome.project_id, outcome.suite_id), []).append(
                outcome
            )
        return [
            RunGroup(project_id=project_id, suite_id=suite_id, outcomes=members)
            for (project_id, suite_id), members in grouped.items()
        ]

    async def apply(self, group: RunGroup) -> GroupOutcome:
        case_ids = group.case_ids

        if group.project_id is None:
            log.warning(
                "Skipping %d case(s) without a project id; tag a suite with [P<id>] "
                "or configure a default project",
                len(case_ids),
            )
            return self._skipped(group, case_ids, "No project id")

        valid = await self.validator.get_valid_case_ids(
            group.project_id, group.suite_id, case_ids
        )
        if not valid:
            log.warning(
                "No valid case ids for project P%s suite S%s, skipping group",
                group.project_id,
                group.suite_id,
            )
            return self._skipped(group, case_ids, "No valid case ids")

        run = await self._ensure_run(group, group.project_id, valid)
        if run is None:
            return self._skipped(group, case_ids, "Run creation failed")

        outside = [c for c in valid if c not in run.case_ids]
        if outside:
            log.warning(
                "Skipping %d case id(s) not part of run R%d: %s",
                len(outside),
                run.run_id,
                ", ".join(f"C{c}" for c in outside),
            )
        postable = {c for c in valid if c in run.case_ids}
        dropped = [c for c in case_ids if c not in postable]
        if not postable:
            return GroupOutcome(
                project_id=group.project_id,
                suite_id=group.suite_id,
                status="skipped",
                run_id=run.run_id,
                dropped_case_ids=tuple(dropped),
                message="No case belongs to the session run",
            )

        results = [build_result(o) for o in group.outcomes if o.case_id in postable]
        posted = 0
        status: GroupStatus
        messages: list[str] = []
        try:
            await self.catalog.add_results_for_cases(run.run_id, results)
            posted = len(results)
            log.info("Reported %d result(s) to run R%d", posted, run.run_id)
        except REMOTE_ERRORS as e:
            log.warning("Posting results to run R%d failed: %s", run.run_id, e)
            messages.append(f"Posting results failed: {e}")

        try:
            await self.catalog.close_run(run.run_id)
            status = "closed"
            log.info("Closed run R%d", run.run_id)
        except REMOTE_ERRORS as e:
            log.warning("Closing run R%d failed: %s", run.run_id, e)
            status = "reported"
            messages.append(f"Closing run failed: {e}")

        return GroupOutcome(
            project_id=group.project_id,
            suite_id=group.suite_id,
            status=status,
            run_id=run.run_id,
            posted=posted,
            dropped_case_ids=tuple(dropped),
            message="; ".join(messages) or None,
        )

    async def _ensure_run(
        self, group: RunGroup, project_id: int, case_ids: Sequence[int]
    ) -> SessionRun | None:
        """Return the session's run for the group, creating it at most once."""
        if (run := self.session.runs.get(group.key)) is not None:
            log.info(
                "Reusing run R%d for project P%s suite S%s",
                run.run_id,
                group.project_id,
                group.suite_id,
            )
            return run

        name = derive_run_name(group.outcomes, self.session.started_at)
        try:
            run_id = await self.catalog.add_run(
                project_id, group.suite_id, name, case_ids
            )
        except REMOTE_ERRORS as e:
            log.warning(
                "Creating run for project P%s suite S%s failed: %s",
                project_id,
                group.suite_id,
                e,
            )
            return None

        log.info("Created run R%d: %s", run_id, name)
        run = SessionRun(run_id=run_id, case_ids=frozenset(case_ids))
        self.session.runs[group.key] = run
        return run

    @staticmethod
    def _skipped(
        group: RunGroup, case_ids: Sequence[int], message: str
    ) -> GroupOutcome:
        return GroupOutcome(
            project_id=group.project_id,
            suite_id=group.suite_id,
            status="skipped",
            dropped_case_ids=tuple(case_ids),
            message=message,
        )


@dataclass(frozen=True, kw_only=True)
class AdhocRunStrategy(RunStrategy):
    """Post into an existing run, limited to the cases that run already holds.

    Runs are never created, modified or closed.
    """

    catalog: CaseCatalog
    run_id: int

    def partition(self, outcomes: Sequence[TestOutcome]) -> Sequence[RunGroup]:
        if not outcomes:
            return []
        return [RunGroup(project_id=None, suite_id=None, outcomes=outcomes)]

    async def apply(self, group: RunGroup) -> GroupOutcome:
        try:
            run_case_ids = {
                test.case_id async for test in self.catalog.iter_run_tests(self.run_id)
            }
        except REMOTE_ERRORS as e:
            log.warning("Fetching tests of run R%d failed: %s", self.run_id, e)
            return GroupOutcome(
                project_id=None,
                suite_id=None,
                status="skipped",
                run_id=self.run_id,
                dropped_case_ids=tuple(group.case_ids),
                message=f"Fetching run tests failed: {e}",
            )

        latest: dict[int, TestOutcome] = {}
        for outcome in group.outcomes:
            if outcome.case_id is not None:
                latest[outcome.case_id] = outcome

        dropped = [c for c in latest if c not in run_case_ids]
        if dropped:
            log.warning(
                "Skipping %d case id(s) not part of run R%d: %s",
                len(dropped),
                self.run_id,
                ", ".join(f"C{c}" for c in dropped),
            )

        results = [build_result(o) for c, o in latest.items() if c in run_case_ids]
        if not results:
            return GroupOutcome(
                project_id=None,
                suite_id=None,
                status="skipped",
                run_id=self.run_id,
                dropped_case_ids=tuple(dropped),
                message="No local case belongs to the run",
            )

        try:
            await self.catalog.add_results_for_cases(self.run_id, results)
        except REMOTE_ERRORS as e:
            log.warning("Posting results to run R%d failed: %s", self.run_id, e)
            return GroupOutcome(
                project_id=None,
                suite_id=None,
                status="skipped",
                run_id=self.run_id,
                dropped_case_ids=tuple(latest),
                message=f"Posting results failed: {e}",
            )

        log.info("Reported %d result(s) to adhoc run R%d", len(results), self.run_id)
        return GroupOutcome(
            project_id=None,
            suite_id=None,
            status="reported",
            run_id=self.run_id,
            posted=len(results),
            dropped_case_ids=tuple(dropped),
        )


def select_strategy(
    catalog: CaseCatalog, session: RunSession, adhoc_run_id: int | None = None
) -> RunStrategy:
    """Pick the adhoc strategy when a run id is supplied, else the normal one."""
    if adhoc_run_id is not None:
        return AdhocRunStrategy(catalog=catalog, run_id=adhoc_run_id)
    return NormalRunStrategy(catalog=catalog, session=session)


@dataclass(frozen=True, kw_only=True)
class RunOrchestrator:
    """Delivers outcomes to the catalog group by group, strictly in sequence."""

    strategy: RunStrategy

    async def report(self, outcomes: Sequence[TestOutcome]) -> Sequence[GroupOutcome]:
        """Report every reportable outcome and return one result per group."""
        reportable = [o for o in outcomes if o.is_reportable]
        if skipped := len(outcomes) - len(reportable):
            log.info("Ignoring %d outcome(s) without a case id", skipped)

        groups = self.strategy.partition(reportable)
        if not groups:
            log.info("No outcome to report")
            return []

        log.info("Reporting %d group(s)...", len(groups))
        results: list[GroupOutcome] = []
        for group in groups:
            outcome = await self.strategy.apply(group)
            log.info(
                "Group completed: project=P%s suite=S%s status=%s posted=%d",
                outcome.project_id,
                outcome.suite_id,
                outcome.status,
                outcome.posted,
            )
            results.append(outcome)
        return results
