"""Pydantic models for TestRail API responses."""

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field, model_validator

ENVELOPE_FIELDS = frozenset({"offset", "limit", "size", "total", "links"})


def normalize_listing(data: Any, key: str) -> Any:
    """Coerce a listing answer into ``{key: [...]}``.

    Depending on version and pagination settings TestRail answers with a
    paginated envelope, a bare array, a single object, or nothing at all.
    """
    if data is None:
        return {key: []}
    if isinstance(data, list):
        return {key: data}
    if isinstance(data, dict):
        if key in data:
            items = data[key]
            if items is None:
                items = []
            elif isinstance(items, dict):
                items = [items]
            return {**data, key: items}
        if "id" in data:
            return {key: [data]}
        return {**data, key: []}
    return data


class Links(BaseModel):
    """Pagination links of a listing envelope."""

    next: str | None = None
    prev: str | None = None


class PagedResponse(BaseModel):
    """Common envelope fields of paginated TestRail listings."""

    offset: int = 0
    limit: int | None = None
    size: int | None = None
    total: int | None = None
    links: Links | None = Field(default=None, alias="_links")

    @property
    def is_paginated(self) -> bool:
        """Whether the answer came wrapped in a pagination envelope."""
        return bool(self.model_fields_set & ENVELOPE_FIELDS)

    def reported_total(self, page_length: int) -> int | None:
        """Total number of items when the answer lets us know it.

        Bare arrays and single objects ignore ``offset``/``limit`` and always
        hold the whole listing.
        """
        if self.total is not None:
            return self.total
        if not self.is_paginated:
            return page_length
        if self.links is not None and self.links.next is None:
            return self.offset + page_length
        return None


class TestRailCase(BaseModel):
    """A case from ``get_case`` or ``get_cases``."""

    __test__ = False

    id: int
    suite_id: int | None = None
    section_id: int | None = None
    title: str | None = None


class CasesResponse(PagedResponse):
    """Response from ``get_cases``."""

    cases: Sequence[TestRailCase] = ()

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        return normalize_listing(data, "cases")


class TestRailTest(BaseModel):
    """A test of a run from ``get_tests``."""

    __test__ = False

    id: int
    case_id: int
    run_id: int | None = None
    status_id: int | None = None


class TestsResponse(PagedResponse):
    """Response from ``get_tests``."""

    tests: Sequence[TestRailTest] = ()

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        return normalize_listing(data, "tests")


class TestRailRun(BaseModel):
    """A run from ``add_run``."""

    __test__ = False

    id: int
    name: str | None = None
    suite_id: int | None = None
    url: str | None = None
