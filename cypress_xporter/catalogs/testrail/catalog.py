"""TestRail catalog implementation."""

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

import aiohttp

from cypress_xporter.catalogs.base import CaseCatalog, CatalogError
from cypress_xporter.catalogs.models import CaseResult, CatalogCase, Page, RunTest
from cypress_xporter.catalogs.testrail.config import TestRailConfig
from cypress_xporter.catalogs.testrail.models import (
    CasesResponse,
    TestRailCase,
    TestRailRun,
    TestsResponse,
)

log = logging.getLogger(__name__)

# get_case answers 400 for ids that do not exist (or are not accessible)
MISSING_CASE_STATUSES = frozenset({400, 404})


@dataclass(frozen=True, kw_only=True)
class TestRailCatalog(CaseCatalog):
    """TestRail v2 API catalog."""

    __test__ = False

    config: TestRailConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: TestRailConfig
    ) -> AsyncGenerator["TestRailCatalog", None]:
        """Create catalog with managed session lifecycle."""
        auth = aiohttp.BasicAuth(config.username, config.api_key.get_secret_value())
        async with aiohttp.ClientSession(
            base_url=config.url,
            auth=auth,
            headers={"Content-Type": "application/json"},
            timeout=aiohttp.ClientTimeout(total=config.timeout),
        ) as session:
            yield cls(config=config, session=session)

    @property
    def page_size(self) -> int:
        return self.config.page_size

    def endpoint(self, route: str, **params: int | None) -> str:
        """Build the request path for an API route.

        The default API path already carries a query marker
        (``index.php?/api/v2``), so parameters are appended with ``&``.
        """
        path = f"{self.config.api_path.rstrip('/')}/{route}"
        query = urlencode({k: v for k, v in params.items() if v is not None})
        if not query:
            return path
        separator = "&" if "?" in path else "?"
        return f"{path}{separator}{query}"

    async def get_cases_page(
        self, project_id: int, suite_id: int | None, offset: int, limit: int
    ) -> Page[CatalogCase]:
        """List one page of cases of a project suite."""
        url = self.endpoint(
            f"get_cases/{project_id}", suite_id=suite_id, offset=offset, limit=limit
        )
        response = CasesResponse.model_validate(await self._get(url))
        items = [self._to_case(case) for case in response.cases]
        return Page(items=items, total=response.reported_total(len(items)))

    async def get_case(self, case_id: int) -> CatalogCase | None:
        """Look up a case by id, None when TestRail does not know it."""
        url = self.endpoint(f"get_case/{case_id}")
        try:
            data = await self._get(url)
        except CatalogError as e:
            if e.status in MISSING_CASE_STATUSES:
                log.info("Case C%d not found in TestRail (%s)", case_id, e.status)
                return None
            raise

        if not data:
            return None
        return self._to_case(TestRailCase.model_validate(data))

    async def add_run(
        self,
        project_id: int,
        suite_id: int | None,
        name: str,
        case_ids: Sequence[int],
    ) -> int:
        """Create a run restricted to ``case_ids``."""
        payload: dict[str, Any] = {
            "name": name,
            "include_all": False,
            "case_ids": list(case_ids),
        }
        if suite_id is not None:
            payload["suite_id"] = suite_id

        log.info(
            "Creating TestRail run: project_id=%s, suite_id=%s, name=%s, cases=%d",
            project_id,
            suite_id,
            name,
            len(case_ids),
        )
        data = await self._post(self.endpoint(f"add_run/{project_id}"), payload)
        return TestRailRun.model_validate(data).id

    async def add_results_for_cases(
        self, run_id: int, results: Sequence[CaseResult]
    ) -> None:
        """Post results for cases of a run in a single request."""
        payload = {
            "results": [
                {
                    "case_id": result.case_id,
                    "status_id": (
                        self.config.passed_status_id
                        if result.passed
                        else self.config.failed_status_id
                    ),
                    "comment": result.comment,
                }
                for result in results
            ]
        }
        await self._post(self.endpoint(f"add_results_for_cases/{run_id}"), payload)

    async def close_run(self, run_id: int) -> None:
        await self._post(self.endpoint(f"close_run/{run_id}"), {})

    async def get_tests_page(
        self, run_id: int, offset: int, limit: int
    ) -> Page[RunTest]:
        """List one page of the tests of a run."""
        url = self.endpoint(f"get_tests/{run_id}", offset=offset, limit=limit)
        response = TestsResponse.model_validate(await self._get(url))
        items = [
            RunTest(id=test.id, case_id=test.case_id, run_id=test.run_id)
            for test in response.tests
        ]
        return Page(items=items, total=response.reported_total(len(items)))

    async def _get(self, url: str) -> Any:
        async with self.session.get(url) as response:
            return await self._read(response, url)

    async def _post(self, url: str, payload: dict[str, Any]) -> Any:
        async with self.session.post(url, json=payload) as response:
            return await self._read(response, url)

    @staticmethod
    async def _read(response: aiohttp.ClientResponse, url: str) -> Any:
        if response.status != 200:
            text = await response.text()
            raise CatalogError(
                f"TestRail request {url} failed: {response.status} {text}",
                status=response.status,
            )
        return await response.json(content_type=None)

    @staticmethod
    def _to_case(case: TestRailCase) -> CatalogCase:
        return CatalogCase(id=case.id, suite_id=case.suite_id, title=case.title)
