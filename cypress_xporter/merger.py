"""Discover and merge mochawesome shard reports into one bundle."""

import json
import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from cypress_xporter.models.report import MergedStats, ReportBundle, ShardReport

log = logging.getLogger(__name__)

REPORT_PATTERN = "**/mochawesome*.json"
MERGED_REPORT_NAME = "merged-mochawesome.json"
IGNORED_DIRS = frozenset({"node_modules", "dist"})


class ReportError(Exception):
    """Raised when a shard report cannot be read or does not match the schema."""


class ReportDiscoveryError(Exception):
    """Raised when no shard report exists to merge."""


def discover_report_files(root: Path) -> Sequence[Path]:
    """Find shard report files below ``root``.

    Raises:
        ReportDiscoveryError: If no report file is found

    """
    files = sorted(
        path
        for path in root.glob(REPORT_PATTERN)
        if path.is_file()
        and path.name != MERGED_REPORT_NAME
        and not IGNORED_DIRS.intersection(path.relative_to(root).parts)
    )

    if not files:
        raise ReportDiscoveryError(f"No mochawesome JSON report files found in {root}")

    log.info("Found %d mochawesome report file(s):", len(files))
    for path in files:
        log.info("  - %s", path)
    return files


def load_shard(path: Path) -> ShardReport:
    """Read and validate one shard document.

    Raises:
        ReportError: If the file is missing, is not JSON, or has the wrong shape

    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ShardReport.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        log.error("Failed to parse %s: %s", path, e)
        raise ReportError(f"Failed to parse {path}: {e}") from e


def merge_reports(shards: Sequence[ShardReport]) -> ReportBundle:
    """Sum shard statistics and concatenate their results.

    ``meta`` is taken from the first shard. Percentages are recomputed from
    the summed totals.

    Raises:
        ReportDiscoveryError: If ``shards`` is empty

    """
    if not shards:
        raise ReportDiscoveryError("No shard reports to merge")

    stats = [shard.stats for shard in shards]
    tests = sum(s.tests for s in stats)
    passes = sum(s.passes for s in stats)
    pending = sum(s.pending for s in stats)
    starts = [s.start for s in stats if s.start is not None]
    ends = [s.end for s in stats if s.end is not None]

    merged_stats = MergedStats(
        tests=tests,
        passes=passes,
        failures=sum(s.failures for s in stats),
        pending=pending,
        suites=sum(s.suites for s in stats),
        duration=sum(s.duration for s in stats),
        tests_registered=sum(s.tests_registered for s in stats),
        skipped=sum(s.skipped for s in stats),
        has_skipped=any(s.has_skipped for s in stats),
        start=min(starts) if starts else None,
        end=max(ends) if ends else None,
        pass_percent=passes / tests * 100 if tests else 0.0,
        pending_percent=pending / tests * 100 if tests else 0.0,
    )

    counted = (
        merged_stats.passes
        + merged_stats.failures
        + merged_stats.pending
        + merged_stats.skipped
    )
    if counted != merged_stats.tests:
        log.info(
            "Merged stats report %d test(s) but %d passes/failures/pending/skipped",
            merged_stats.tests,
            counted,
        )

    return ReportBundle(
        stats=merged_stats,
        results=[result for shard in shards for result in shard.results],
        meta=shards[0].meta,
    )


def load_reports(paths: Sequence[Path]) -> ReportBundle:
    """Load every shard and merge them; any unreadable shard aborts the merge."""
    if not paths:
        raise ReportDiscoveryError("No mochawesome JSON report files given")
    return merge_reports([load_shard(path) for path in paths])


def write_merged_report(bundle: ReportBundle, path: Path) -> None:
    """Write the merged report using the reporter's field names."""
    path.write_text(
        bundle.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
    )
    log.info("Merged report saved to: %s", path)
