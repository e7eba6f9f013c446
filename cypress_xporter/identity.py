"""Parse routing tags embedded in test and suite titles.

Titles may carry ``[C<n>]`` (case), ``[S<n>]`` (suite) and ``[P<n>]``
(project) tags anywhere, in any order and in any case. Only the first tag of
each kind in a title is honored.
"""

import re
from dataclasses import dataclass, replace

CASE_TAG = re.compile(r"\[C(\d+)\]", re.IGNORECASE)
SUITE_TAG = re.compile(r"\[S(\d+)\]", re.IGNORECASE)
PROJECT_TAG = re.compile(r"\[P(\d+)\]", re.IGNORECASE)

DEFAULT_SUITE_ID = 1


@dataclass(frozen=True, kw_only=True)
class RoutingTags:
    """Routing identifiers resolved for one node of the suite tree."""

    case_id: int | None = None
    suite_id: int | None = None
    project_id: int | None = None

    def override(self, other: "RoutingTags") -> "RoutingTags":
        """Return a copy where every tag present in ``other`` replaces ours."""
        return replace(
            self,
            case_id=other.case_id if other.case_id is not None else self.case_id,
            suite_id=other.suite_id if other.suite_id is not None else self.suite_id,
            project_id=(
                other.project_id if other.project_id is not None else self.project_id
            ),
        )


@dataclass(frozen=True, kw_only=True)
class IdentityDefaults:
    """Fallbacks applied when no tag of a kind is found on a test or its suites."""

    project_id: int | None = None
    suite_id: int | None = DEFAULT_SUITE_ID


def _first_int(pattern: re.Pattern[str], title: str) -> int | None:
    if match := pattern.search(title):
        return int(match.group(1))
    return None


def parse_case_id(title: str) -> int | None:
    """Extract the case id from a title, e.g. ``"login works [C4001]"``."""
    return _first_int(CASE_TAG, title)


def parse_tags(title: str | None) -> RoutingTags:
    """Extract every routing tag present in ``title``."""
    if not title:
        return RoutingTags()
    return RoutingTags(
        case_id=_first_int(CASE_TAG, title),
        suite_id=_first_int(SUITE_TAG, title),
        project_id=_first_int(PROJECT_TAG, title),
    )


def resolve(tags: RoutingTags, defaults: IdentityDefaults) -> RoutingTags:
    """Fill missing suite and project ids from the configured defaults."""
    return replace(
        tags,
        suite_id=tags.suite_id if tags.suite_id is not None else defaults.suite_id,
        project_id=(
            tags.project_id if tags.project_id is not None else defaults.project_id
        ),
    )
