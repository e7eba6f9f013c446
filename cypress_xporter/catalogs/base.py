"""Abstract base class for remote test case catalogs."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass

import aiohttp
from pydantic import ValidationError

from cypress_xporter.catalogs.models import CaseResult, CatalogCase, Page, RunTest

DEFAULT_PAGE_SIZE = 250


class CatalogError(Exception):
    """Raised when the catalog rejects a request or answers unexpectedly."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


# Failures of a single remote call; callers log them and fall back
REMOTE_ERRORS: tuple[type[Exception], ...] = (
    CatalogError,
    aiohttp.ClientError,
    TimeoutError,
    ValidationError,
)


@dataclass(frozen=True, kw_only=True)
class CaseCatalog(ABC):
    """Abstract base for test case catalogs (TestRail and compatibles).

    Every method is a single awaited round trip. Implementations raise
    CatalogError (or the transport's own errors) on failure; callers decide
    what is fatal.
    """

    @property
    def page_size(self) -> int:
        """Upper bound on the number of items requested per page."""
        return DEFAULT_PAGE_SIZE

    @abstractmethod
    async def get_cases_page(
        self, project_id: int, suite_id: int | None, offset: int, limit: int
    ) -> Page[CatalogCase]:
        """Fetch one page of cases of a project, restricted to a suite.

        Args:
            project_id: Catalog project identifier
            suite_id: Suite to list; None for single-suite projects
            offset: Number of cases to skip
            limit: Maximum number of cases to return

        Returns:
            The page of cases, normalized to a list

        """

    @abstractmethod
    async def get_case(self, case_id: int) -> CatalogCase | None:
        """Look up a single case; None when the catalog does not know it."""

    @abstractmethod
    async def add_run(
        self,
        project_id: int,
        suite_id: int | None,
        name: str,
        case_ids: Sequence[int],
    ) -> int:
        """Create a run containing exactly ``case_ids`` and return its id."""

    @abstractmethod
    async def add_results_for_cases(
        self, run_id: int, results: Sequence[CaseResult]
    ) -> None:
        """Record results against cases of a run."""

    @abstractmethod
    async def close_run(self, run_id: int) -> None:
        """Close a run so it no longer accepts results."""

    @abstractmethod
    async def get_tests_page(
        self, run_id: int, offset: int, limit: int
    ) -> Page[RunTest]:
        """Fetch one page of the tests contained in a run."""

    async def iter_cases(
        self, project_id: int, suite_id: int | None
    ) -> AsyncIterator[CatalogCase]:
        """Yield every case of a project suite, following pagination."""

        async def fetch(offset: int, limit: int) -> Page[CatalogCase]:
            return await self.get_cases_page(project_id, suite_id, offset, limit)

        async for case in self._paginate(fetch):
            yield case

    async def iter_run_tests(self, run_id: int) -> AsyncIterator[RunTest]:
        """Yield every test of a run, following pagination."""

        async def fetch(offset: int, limit: int) -> Page[RunTest]:
            return await self.get_tests_page(run_id, offset, limit)

        async for test in self._paginate(fetch):
            yield test

    async def _paginate[T](
        self, fetch: Callable[[int, int], Awaitable[Page[T]]]
    ) -> AsyncIterator[T]:
        """Request pages until a short page or the reported total is reached.

        A page longer than ``limit`` means the catalog ignored paging and
        answered with the whole listing, so it is the last one.
        """
        limit = self.page_size
        offset = 0

        while True:
            page = await fetch(offset, limit)
            for item in page.items:
                yield item

            offset += len(page.items)
            if len(page.items) != limit:
                break
            if page.total is not None and offset >= page.total:
                break
