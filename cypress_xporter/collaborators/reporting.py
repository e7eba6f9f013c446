"""Invoke collaborators without letting their failures stop catalog reporting."""

import logging
from collections.abc import Sequence
from dataclasses import replace

from cypress_xporter.collaborators.base import DashboardPublisher, IssueTracker
from cypress_xporter.models.outcome import TestOutcome
from cypress_xporter.models.result import ExecutionSummary, GroupOutcome

log = logging.getLogger(__name__)


async def file_issues(
    tracker: IssueTracker, failed: Sequence[TestOutcome]
) -> Sequence[TestOutcome]:
    """Send failed outcomes to the tracker and attach the returned references.

    On tracker failure, or when it answers with the wrong number of
    references, the outcomes are returned unchanged.
    """
    if not failed:
        return failed

    try:
        refs = await tracker.report_failures(failed)
    except Exception as e:
        log.warning("Issue tracker failed: %s", e, exc_info=e)
        return failed

    if len(refs) != len(failed):
        log.warning(
            "Issue tracker returned %d reference(s) for %d failure(s); ignoring",
            len(refs),
            len(failed),
        )
        return failed

    return [
        replace(outcome, issue_ref=ref) if ref is not None else outcome
        for outcome, ref in zip(failed, refs, strict=True)
    ]


async def publish_dashboard(
    publisher: DashboardPublisher,
    summary: ExecutionSummary,
    run_summary: Sequence[GroupOutcome] | None,
    failures: Sequence[TestOutcome] = (),
) -> bool:
    """Publish the summary; return whether publishing succeeded."""
    try:
        await publisher.publish(summary, run_summary, failures)
    except Exception as e:
        log.warning("Dashboard publishing failed: %s", e, exc_info=e)
        return False
    return True
