"""Catalog-neutral models exchanged with CaseCatalog implementations."""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class CatalogCase:
    """A test case definition known to the catalog."""

    id: int
    suite_id: int | None = None
    title: str | None = None


@dataclass(frozen=True, kw_only=True)
class RunTest:
    """A test instance belonging to an existing run."""

    id: int
    case_id: int
    run_id: int | None = None


@dataclass(frozen=True, kw_only=True)
class CaseResult:
    """A binary result to record against a case in a run."""

    case_id: int
    passed: bool
    comment: str


@dataclass(frozen=True, kw_only=True)
class Page[T]:
    """One page of a listing; ``total`` is set when the catalog reports it."""

    items: Sequence[T]
    total: int | None = None
