"""Collapse repeated outcomes of the same logical test."""

import logging
from collections.abc import Iterable, Sequence

from cypress_xporter.models.outcome import TestOutcome

log = logging.getLogger(__name__)


def normalize_title(title: str) -> str:
    """Key used to decide whether two outcomes are the same test."""
    return title.strip().lower()


def deduplicate(outcomes: Iterable[TestOutcome]) -> Sequence[TestOutcome]:
    """Keep the last outcome per normalized title.

    Retried shards report a test more than once; the latest attempt wins and
    takes the position where the title was first seen. Distinct tests that
    share a title are collapsed too.
    """
    latest: dict[str, TestOutcome] = {}
    seen = 0
    for outcome in outcomes:
        seen += 1
        latest[normalize_title(outcome.title)] = outcome

    if seen != len(latest):
        log.info("Collapsed %d duplicate outcome(s)", seen - len(latest))

    return list(latest.values())
