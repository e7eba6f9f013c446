"""Flatten the nested suite tree of a report into test outcomes."""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from cypress_xporter.identity import (
    IdentityDefaults,
    RoutingTags,
    parse_tags,
    resolve,
)
from cypress_xporter.models.outcome import KNOWN_STATES, TestOutcome, TestState
from cypress_xporter.models.report import RawSuite, RawTest, ReportBundle

log = logging.getLogger(__name__)

MISSING_ERROR_MESSAGE = "Test failed"


def iter_outcomes(
    suite: RawSuite,
    file: str,
    context: RoutingTags = RoutingTags(),
    defaults: IdentityDefaults = IdentityDefaults(),
) -> Iterator[TestOutcome]:
    """Yield outcomes for ``suite`` and its descendants in document order.

    A tag in a suite title replaces the inherited tag of the same kind for the
    suite and everything below it. ``context`` is never mutated; each level
    derives its own.
    """
    node_context = context.override(parse_tags(suite.title))
    node_file = suite.file or file

    for test in suite.tests:
        tags = resolve(node_context.override(parse_tags(test.title)), defaults)
        yield build_outcome(test, node_file, tags)

    for child in suite.suites:
        yield from iter_outcomes(child, node_file, node_context, defaults)


def normalize_state(state: str | None) -> TestState:
    """Map the reporter's state onto a known state, or ``unknown``."""
    if state is None:
        return "unknown"
    lowered = state.strip().lower()
    if lowered in KNOWN_STATES:
        return lowered  # type: ignore[return-value]
    return "unknown"


def build_outcome(test: RawTest, file: str, tags: RoutingTags) -> TestOutcome:
    """Convert one raw test node into a TestOutcome."""
    state = normalize_state(test.state)
    error_message = None
    if state == "failed":
        error_message = (test.err.message if test.err else None) or (
            MISSING_ERROR_MESSAGE
        )

    return TestOutcome(
        title=test.title.strip(),
        full_title=test.full_title or test.title,
        state=state,
        file=file,
        error_message=error_message,
        body=test.code or "",
        case_id=tags.case_id,
        suite_id=tags.suite_id,
        project_id=tags.project_id,
    )


@dataclass(frozen=True)
class ReportOutcomes:
    """Restartable view over every outcome of a merged report.

    Each iteration walks the report again from the first result file.
    """

    bundle: ReportBundle
    defaults: IdentityDefaults = IdentityDefaults()

    def __iter__(self) -> Iterator[TestOutcome]:
        for result in self.bundle.results:
            yield from iter_outcomes(
                result, result.file or "", defaults=self.defaults
            )


def partition(
    outcomes: Sequence[TestOutcome],
) -> tuple[Sequence[TestOutcome], Sequence[TestOutcome]]:
    """Split outcomes into (passed, failed); other states belong to neither."""
    passed = [outcome for outcome in outcomes if outcome.passed]
    failed = [outcome for outcome in outcomes if outcome.failed]
    log.info("Passed: %d, failed: %d", len(passed), len(failed))
    return passed, failed
