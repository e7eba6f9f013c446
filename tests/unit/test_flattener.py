"""Tests for flattening suite trees into outcomes."""

from typing import Any

from cypress_xporter.flattener import (
    MISSING_ERROR_MESSAGE,
    ReportOutcomes,
    iter_outcomes,
    normalize_state,
    partition,
)
from cypress_xporter.identity import IdentityDefaults
from cypress_xporter.merger import merge_reports
from cypress_xporter.models.report import RawSuite, ShardReport
from cypress_xporter.testing.reports import mocha_suite, mocha_test, shard_report

SPEC_FILE = "cypress/e2e/admin/users/list.cy.js"


def suite(data: dict[str, Any]) -> RawSuite:
    return RawSuite.model_validate(data)


def count_tests(node: dict[str, Any]) -> int:
    return len(node["tests"]) + sum(count_tests(child) for child in node["suites"])


def test_yields_one_outcome_per_test_in_document_order() -> None:
    """Parents come before children and children keep array order."""
    tree = mocha_suite(
        file=SPEC_FILE,
        tests=[mocha_test("root test")],
        suites=[
            mocha_suite(
                "Users",
                tests=[mocha_test("lists users"), mocha_test("filters users")],
                suites=[mocha_suite("Nested", tests=[mocha_test("deep test")])],
            ),
            mocha_suite("Empty"),
            mocha_suite("Roles", tests=[mocha_test("lists roles")]),
        ],
    )

    outcomes = list(iter_outcomes(suite(tree), SPEC_FILE))

    assert len(outcomes) == count_tests(tree)
    assert [o.title for o in outcomes] == [
        "root test",
        "lists users",
        "filters users",
        "deep test",
        "lists roles",
    ]
    assert {o.file for o in outcomes} == {SPEC_FILE}


def test_empty_suite_yields_nothing() -> None:
    """A node with neither tests nor suites produces no outcome."""
    assert list(iter_outcomes(suite(mocha_suite("Empty")), SPEC_FILE)) == []


def test_child_tag_overrides_parent_tag() -> None:
    """A child suite tagged [P9] under a [P3] parent routes to project 9."""
    tree = mocha_suite(
        "[P3] Admin",
        tests=[mocha_test("parent test [C1]")],
        suites=[mocha_suite("[P9] Billing", tests=[mocha_test("child test [C2]")])],
    )

    outcomes = list(iter_outcomes(suite(tree), SPEC_FILE))

    assert [(o.title, o.project_id) for o in outcomes] == [
        ("parent test [C1]", 3),
        ("child test [C2]", 9),
    ]


def test_sibling_branches_do_not_share_context() -> None:
    """A tag on one branch never leaks into its sibling."""
    tree = mocha_suite(
        "[P3]",
        suites=[
            mocha_suite("[P9][S4] Tagged", tests=[mocha_test("a [C1]")]),
            mocha_suite("Untagged", tests=[mocha_test("b [C2]")]),
        ],
    )

    outcomes = list(iter_outcomes(suite(tree), SPEC_FILE))

    assert [(o.project_id, o.suite_id) for o in outcomes] == [(9, 4), (3, 1)]


def test_leaf_tag_takes_precedence_over_inherited_tag() -> None:
    """A test title tag beats the tag of its suite."""
    tree = mocha_suite("[S5] Suite", tests=[mocha_test("[S8] test [C3]")])

    (outcome,) = iter_outcomes(suite(tree), SPEC_FILE)

    assert outcome.suite_id == 8
    assert outcome.case_id == 3


def test_defaults_fill_missing_ids() -> None:
    """Untagged tests get the configured project and suite."""
    tree = mocha_suite("Suite", tests=[mocha_test("untagged")])
    defaults = IdentityDefaults(project_id=42, suite_id=1)

    (outcome,) = iter_outcomes(suite(tree), SPEC_FILE, defaults=defaults)

    assert outcome.case_id is None
    assert outcome.project_id == 42
    assert outcome.suite_id == 1
    assert not outcome.is_reportable


def test_missing_state_becomes_unknown() -> None:
    """Tests without a state are unknown and belong to no partition."""
    tree = mocha_suite(
        tests=[
            mocha_test("no state", state=None),
            mocha_test("weird state", state="flaky"),
            mocha_test("passes"),
        ]
    )

    outcomes = list(iter_outcomes(suite(tree), SPEC_FILE))
    passed, failed = partition(outcomes)

    assert [o.state for o in outcomes] == ["unknown", "unknown", "passed"]
    assert [o.title for o in passed] == ["passes"]
    assert failed == []


def test_error_message_only_for_failures() -> None:
    """Failed tests carry the reporter message, or a placeholder."""
    tree = mocha_suite(
        tests=[
            mocha_test("fails", state="failed", error="expected 1 to equal 2"),
            mocha_test("fails silently", state="failed"),
            mocha_test("passes"),
        ]
    )

    outcomes = list(iter_outcomes(suite(tree), SPEC_FILE))

    assert [o.error_message for o in outcomes] == [
        "expected 1 to equal 2",
        MISSING_ERROR_MESSAGE,
        None,
    ]


def test_outcome_keeps_full_title_and_body() -> None:
    """Full title and source code are carried over."""
    tree = mocha_suite(
        tests=[mocha_test("works", full_title="Login works", code="cy.login()")]
    )

    (outcome,) = iter_outcomes(suite(tree), SPEC_FILE)

    assert outcome.full_title == "Login works"
    assert outcome.body == "cy.login()"


def test_normalize_state() -> None:
    """States are lowercased and unknown values collapse to unknown."""
    assert normalize_state("PASSED") == "passed"
    assert normalize_state("skipped") == "skipped"
    assert normalize_state(None) == "unknown"
    assert normalize_state("") == "unknown"


def test_report_outcomes_is_restartable() -> None:
    """Iterating twice walks the whole report twice."""
    bundle = merge_reports(
        [
            ShardReport.model_validate(
                shard_report(
                    [
                        mocha_suite(
                            file="cypress/e2e/a.cy.js",
                            suites=[mocha_suite("A", tests=[mocha_test("a [C1]")])],
                        ),
                        mocha_suite(
                            file="cypress/e2e/b.cy.js",
                            suites=[mocha_suite("B", tests=[mocha_test("b [C2]")])],
                        ),
                    ],
                    tests=2,
                    passes=2,
                )
            )
        ]
    )
    outcomes = ReportOutcomes(bundle, IdentityDefaults(project_id=1))

    first = list(outcomes)
    second = list(outcomes)

    assert first == second
    assert [(o.case_id, o.file) for o in first] == [
        (1, "cypress/e2e/a.cy.js"),
        (2, "cypress/e2e/b.cy.js"),
    ]
