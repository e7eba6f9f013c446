"""CLI entry point for exporting Cypress results."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from cypress_xporter.collaborators.reporting import file_issues, publish_dashboard
from cypress_xporter.dedup import deduplicate
from cypress_xporter.flattener import ReportOutcomes, partition
from cypress_xporter.identity import DEFAULT_SUITE_ID, IdentityDefaults
from cypress_xporter.loading import (
    CATALOGS_GROUP,
    DASHBOARDS_GROUP,
    ISSUE_TRACKERS_GROUP,
    PluginNotFoundError,
    load_manifest,
)
from cypress_xporter.manifest import Manifest
from cypress_xporter.merger import (
    ReportDiscoveryError,
    ReportError,
    discover_report_files,
    load_reports,
    write_merged_report,
)
from cypress_xporter.models.outcome import TestOutcome
from cypress_xporter.models.result import ExecutionSummary, GroupOutcome
from cypress_xporter.orchestrator import RunOrchestrator, select_strategy
from cypress_xporter.session import RunSession

STATUS_SYMBOLS = {
    "closed": "✅",
    "reported": "⚠️",
    "skipped": "⏭️",
}

type Plugin = tuple[Manifest[Any, Any], BaseModel]


class PluginConfigError(Exception):
    """Raised when a plugin configuration cannot be parsed."""


def log_results_summary(
    log: logging.Logger,
    summary: ExecutionSummary,
    group_outcomes: Sequence[GroupOutcome] | None,
    failures: Sequence[TestOutcome] = (),
) -> None:
    """Log a formatted summary of local totals, run outcomes and filed issues."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)
    log.info(
        "Total: %d, passed: %d, failed: %d, pending: %d, skipped: %d (%.2f%%)",
        summary.total,
        summary.passed,
        summary.failed,
        summary.pending,
        summary.skipped,
        summary.pass_percent,
    )

    for group in group_outcomes or ():
        symbol = STATUS_SYMBOLS.get(group.status, "?")
        log.info(
            "%s P%s/S%s: %s (run=%s, posted=%d)",
            symbol,
            group.project_id,
            group.suite_id,
            group.status,
            group.run_id,
            group.posted,
        )
        if group.dropped_case_ids:
            log.info(
                "  Dropped: %s", ", ".join(f"C{c}" for c in group.dropped_case_ids)
            )
        if group.message:
            log.info("  Message: %s", group.message)

    for outcome in failures:
        if outcome.issue_ref:
            log.info("🐞 %s: %s", outcome.title, outcome.issue_ref)


def format_output(
    summary: ExecutionSummary,
    group_outcomes: Sequence[GroupOutcome] | None,
    failures: Sequence[TestOutcome] = (),
) -> dict[str, Any]:
    """Format totals, run outcomes and failures for JSON output."""
    return {
        "total": summary.total,
        "passed": summary.passed,
        "failed": summary.failed,
        "pending": summary.pending,
        "skipped": summary.skipped,
        "unknown": summary.unknown,
        "pass_percent": round(summary.pass_percent, 2),
        "groups": [
            {
                "project_id": group.project_id,
                "suite_id": group.suite_id,
                "status": group.status,
                "run_id": group.run_id,
                "posted": group.posted,
                "dropped_case_ids": list(group.dropped_case_ids),
                "message": group.message,
            }
            for group in group_outcomes or ()
        ],
        "failures": [
            {
                "title": outcome.title,
                "file": outcome.file,
                "case_id": outcome.case_id,
                "error_message": outcome.error_message,
                "issue_ref": outcome.issue_ref,
            }
            for outcome in failures
        ],
    }


def load_plugin(group: str, key: str | None, config_json: str) -> Plugin | None:
    """Load a plugin manifest and parse its configuration, if a key is given.

    Raises:
        PluginNotFoundError: If the key is unknown
        PluginConfigError: If the configuration is not valid for the plugin

    """
    if not key:
        return None

    manifest = load_manifest(group, key)
    try:
        config = manifest.configure(config_json)
    except ValidationError as e:
        raise PluginConfigError(f"Invalid configuration for '{key}': {e}") from e
    return manifest, config


async def run(
    *,
    reports_dir: Path,
    report_paths: Sequence[Path] = (),
    merged_output: Path | None = None,
    catalog_key: str | None = None,
    catalog_config_json: str = "{}",
    adhoc_run_id: int | None = None,
    default_project_id: int | None = None,
    default_suite_id: int | None = DEFAULT_SUITE_ID,
    issue_tracker_key: str | None = None,
    issue_tracker_config_json: str = "{}",
    dashboard_key: str | None = None,
    dashboard_config_json: str = "{}",
) -> int:
    """Export results and return exit code."""
    log = logging.getLogger("cypress_xporter")

    try:
        catalog = load_plugin(CATALOGS_GROUP, catalog_key, catalog_config_json)
        tracker = load_plugin(
            ISSUE_TRACKERS_GROUP, issue_tracker_key, issue_tracker_config_json
        )
        dashboard = load_plugin(DASHBOARDS_GROUP, dashboard_key, dashboard_config_json)
    except (PluginNotFoundError, PluginConfigError) as e:
        log.error("%s", e)
        return 1

    try:
        log.info("Searching for mochawesome reports...")
        paths = report_paths or discover_report_files(reports_dir)
        log.info("Merging %d mochawesome report(s)...", len(paths))
        bundle = load_reports(paths)
        if merged_output is not None:
            write_merged_report(bundle, merged_output)
    except (ReportError, ReportDiscoveryError, OSError) as e:
        log.error("Failed to merge mochawesome reports: %s", e)
        return 1

    defaults = IdentityDefaults(
        project_id=default_project_id, suite_id=default_suite_id
    )
    outcomes = deduplicate(ReportOutcomes(bundle, defaults))
    log.info("Found %d unique test(s)", len(outcomes))
    summary = ExecutionSummary.from_outcomes(outcomes)
    passed, failed = partition(outcomes)

    if tracker is not None:
        manifest, config = tracker
        async with manifest.factory(config) as issue_tracker:
            failed = await file_issues(issue_tracker, failed)

    group_outcomes: Sequence[GroupOutcome] | None = None
    if catalog is not None:
        manifest, config = catalog
        session = RunSession()
        async with manifest.factory(config) as case_catalog:
            orchestrator = RunOrchestrator(
                strategy=select_strategy(case_catalog, session, adhoc_run_id)
            )
            group_outcomes = await orchestrator.report([*passed, *failed])

    if dashboard is not None:
        manifest, config = dashboard
        async with manifest.factory(config) as publisher:
            await publish_dashboard(publisher, summary, group_outcomes, failed)

    log_results_summary(log, summary, group_outcomes, failed)
    print(json.dumps(format_output(summary, group_outcomes, failed), indent=2))
    return 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Merge Cypress mochawesome reports and publish the results"
    )
    parser.add_argument(
        "--reports-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory searched for mochawesome*.json shard reports",
    )
    parser.add_argument(
        "--report",
        type=Path,
        action="append",
        default=[],
        dest="reports",
        help="Explicit shard report path (repeatable, disables discovery)",
    )
    parser.add_argument(
        "--merged-output",
        type=Path,
        help="Write the merged report to this path",
    )
    parser.add_argument(
        "--catalog",
        help="Catalog key to report runs to (e.g. testrail)",
    )
    parser.add_argument(
        "--catalog-config",
        default="{}",
        help="JSON configuration for the catalog",
    )
    parser.add_argument(
        "--adhoc-run-id",
        type=int,
        help="Post into this existing run instead of creating runs",
    )
    parser.add_argument(
        "--default-project-id",
        type=int,
        help="Project id for tests without a [P<id>] tag",
    )
    parser.add_argument(
        "--default-suite-id",
        type=int,
        default=DEFAULT_SUITE_ID,
        help="Suite id for tests without an [S<id>] tag",
    )
    parser.add_argument(
        "--issue-tracker",
        help="Issue tracker key to file failed tests with",
    )
    parser.add_argument(
        "--issue-tracker-config",
        default="{}",
        help="JSON configuration for the issue tracker",
    )
    parser.add_argument(
        "--dashboard",
        help="Dashboard key to publish the summary with",
    )
    parser.add_argument(
        "--dashboard-config",
        default="{}",
        help="JSON configuration for the dashboard",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            reports_dir=args.reports_dir,
            report_paths=args.reports,
            merged_output=args.merged_output,
            catalog_key=args.catalog,
            catalog_config_json=args.catalog_config,
            adhoc_run_id=args.adhoc_run_id,
            default_project_id=args.default_project_id,
            default_suite_id=args.default_suite_id,
            issue_tracker_key=args.issue_tracker,
            issue_tracker_config_json=args.issue_tracker_config,
            dashboard_key=args.dashboard,
            dashboard_config_json=args.dashboard_config,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
