"""Confirm that case ids exist in the catalog under the expected suite."""

import logging
from collections.abc import Sequence
from contextlib import aclosing
from dataclasses import dataclass

from cypress_xporter.catalogs.base import REMOTE_ERRORS, CaseCatalog
from cypress_xporter.session import CaseValidation, RunSession

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class CatalogValidator:
    """Validates case ids against a catalog, caching answers in the session."""

    catalog: CaseCatalog
    session: RunSession

    async def get_valid_case_ids(
        self, project_id: int, suite_id: int | None, case_ids: Sequence[int]
    ) -> Sequence[int]:
        """Return the case ids that exist under ``suite_id``.

        Unknown ids are first looked for in the paginated suite listing; ids
        the listing did not confirm are looked up one by one. Ids that fail
        both are dropped. Catalog errors never propagate.

        Args:
            project_id: Catalog project identifier
            suite_id: Suite the cases must belong to
            case_ids: Candidate case ids, possibly with duplicates

        Returns:
            Valid ids in input order, without duplicates

        """
        candidates = list(dict.fromkeys(case_ids))
        unresolved = [c for c in candidates if c not in self.session.validations]

        if unresolved:
            log.info(
                "Validating %d case id(s) for project P%s suite S%s",
                len(unresolved),
                project_id,
                suite_id,
            )
            remaining = await self._confirm_from_listing(
                project_id, suite_id, unresolved
            )
            for case_id in remaining:
                await self._confirm_individually(case_id, suite_id)

        valid = [c for c in candidates if self._is_valid(c, suite_id)]
        invalid = [c for c in candidates if c not in valid]
        if invalid:
            log.warning(
                "Skipping %d case id(s) not found in suite S%s: %s",
                len(invalid),
                suite_id,
                ", ".join(f"C{c}" for c in invalid),
            )
        return valid

    async def _confirm_from_listing(
        self, project_id: int, suite_id: int | None, case_ids: Sequence[int]
    ) -> Sequence[int]:
        """Confirm ids from the bulk listing; return the ids still unresolved."""
        pending = set(case_ids)

        try:
            async with aclosing(
                self.catalog.iter_cases(project_id, suite_id)
            ) as cases:
                async for case in cases:
                    if case.id not in pending:
                        continue
                    pending.discard(case.id)
                    listed_suite = suite_id if case.suite_id is None else case.suite_id
                    self.session.validations[case.id] = CaseValidation(
                        exists=True, suite_id=listed_suite
                    )
                    if not pending:
                        break
        except REMOTE_ERRORS as e:
            log.warning(
                "Listing cases of project P%s suite S%s failed, "
                "falling back to single lookups: %s",
                project_id,
                suite_id,
                e,
            )

        return [c for c in case_ids if c in pending]

    async def _confirm_individually(self, case_id: int, suite_id: int | None) -> None:
        try:
            case = await self.catalog.get_case(case_id)
        except REMOTE_ERRORS as e:
            log.warning("Looking up case C%d failed: %s", case_id, e)
            case = None

        if case is None:
            self.session.validations[case_id] = CaseValidation(exists=False)
            return

        self.session.validations[case_id] = CaseValidation(
            exists=True, suite_id=case.suite_id
        )
        if not _same_suite(case.suite_id, suite_id):
            log.warning(
                "Case C%d belongs to suite S%s, not S%s",
                case_id,
                case.suite_id,
                suite_id,
            )

    def _is_valid(self, case_id: int, suite_id: int | None) -> bool:
        validation = self.session.validations.get(case_id)
        if validation is None or not validation.exists:
            return False
        return _same_suite(validation.suite_id, suite_id)


def _same_suite(actual: int | None, expected: int | None) -> bool:
    # Single-suite projects do not report suite ids
    return actual is None or expected is None or actual == expected
