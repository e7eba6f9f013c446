"""In-memory catalog for exercising validation and run orchestration."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from cypress_xporter.catalogs.base import CaseCatalog, CatalogError
from cypress_xporter.catalogs.models import CaseResult, CatalogCase, Page, RunTest


@dataclass(frozen=True, kw_only=True)
class InMemoryCatalog(CaseCatalog):
    """Catalog backed by plain data that records every call.

    ``listed`` is what bulk listings return; ``known`` additionally answers
    single lookups, which lets tests model listings that miss cases.
    """

    listed: Sequence[CatalogCase] = ()
    known: Sequence[CatalogCase] = ()
    run_cases: Mapping[int, Sequence[int]] = field(default_factory=dict)
    limit: int = 250
    fail_listing_at_offset: int | None = None
    failing_lookups: frozenset[int] = frozenset()
    fail_add_run: bool = False
    fail_add_results: bool = False
    fail_close_run: bool = False
    fail_get_tests: bool = False
    first_run_id: int = 100
    calls: list[tuple[str, Any]] = field(default_factory=list)
    posted: dict[int, list[CaseResult]] = field(default_factory=dict)

    @property
    def page_size(self) -> int:
        return self.limit

    def calls_to(self, name: str) -> list[Any]:
        """Arguments of every call to ``name``, in order."""
        return [args for called, args in self.calls if called == name]

    async def get_cases_page(
        self, project_id: int, suite_id: int | None, offset: int, limit: int
    ) -> Page[CatalogCase]:
        self.calls.append(("get_cases_page", (project_id, suite_id, offset, limit)))
        failing = self.fail_listing_at_offset
        if failing is not None and offset >= failing:
            raise CatalogError("listing failed", status=500)
        cases = [c for c in self.listed if suite_id is None or c.suite_id == suite_id]
        return Page(items=cases[offset : offset + limit])

    async def get_case(self, case_id: int) -> CatalogCase | None:
        self.calls.append(("get_case", case_id))
        if case_id in self.failing_lookups:
            raise CatalogError("lookup failed", status=500)
        for case in [*self.listed, *self.known]:
            if case.id == case_id:
                return case
        return None

    async def add_run(
        self,
        project_id: int,
        suite_id: int | None,
        name: str,
        case_ids: Sequence[int],
    ) -> int:
        self.calls.append(("add_run", (project_id, suite_id, name, list(case_ids))))
        if self.fail_add_run:
            raise CatalogError("add_run failed", status=400)
        return self.first_run_id + len(self.calls_to("add_run")) - 1

    async def add_results_for_cases(
        self, run_id: int, results: Sequence[CaseResult]
    ) -> None:
        self.calls.append(("add_results_for_cases", (run_id, list(results))))
        if self.fail_add_results:
            raise CatalogError("add_results_for_cases failed", status=400)
        self.posted.setdefault(run_id, []).extend(results)

    async def close_run(self, run_id: int) -> None:
        self.calls.append(("close_run", run_id))
        if self.fail_close_run:
            raise CatalogError("close_run failed", status=403)

    async def get_tests_page(
        self, run_id: int, offset: int, limit: int
    ) -> Page[RunTest]:
        self.calls.append(("get_tests_page", (run_id, offset, limit)))
        if self.fail_get_tests:
            raise CatalogError("get_tests failed", status=400)
        case_ids = list(self.run_cases.get(run_id, ()))[offset : offset + limit]
        return Page(
            items=[
                RunTest(id=offset + i + 1, case_id=case_id, run_id=run_id)
                for i, case_id in enumerate(case_ids)
            ]
        )
