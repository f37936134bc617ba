"""
Case directory service: sorted listings, latest cases, and admin CRUD.
"""

from typing import Optional

from casebook.store import CaseData, CaseStore, CaseSummary
from casebook.wordcount import word_count


def sort_by_date(cases: list) -> list:
    """
    Newest first by ISO-8601 string comparison of ``date``.

    The sort is stable, so cases sharing a date keep their input order.
    """
    return sorted(cases, key=lambda case: case.date, reverse=True)


class CaseDirectory:
    """Aggregates cases from the store for the public site and the admin."""

    def __init__(self, store: CaseStore):
        self.store = store

    @property
    def backend_name(self) -> str:
        return self.store.backend.name

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def list_sorted(self) -> list[CaseSummary]:
        """All cases, newest first."""
        return sort_by_date(await self.store.list_all())

    async def latest(self, count: int) -> list[CaseSummary]:
        """
        The ``count`` most recent cases.

        Returns every case when fewer than ``count`` exist, and nothing
        when ``count`` is zero or negative.
        """
        if count <= 0:
            return []
        return (await self.list_sorted())[:count]

    async def list_with_word_counts(self) -> list[CaseSummary]:
        """All cases newest first, each with the plain-text length of its body."""
        summaries = []
        for case in await self.store.list_cases():
            summary = case.summary()
            summary.word_count = word_count(case.content)
            summaries.append(summary)
        return sort_by_date(summaries)

    async def case_ids(self) -> list[str]:
        """Ids of every stored case."""
        return [case.id for case in await self.store.list_all()]

    # ------------------------------------------------------------------
    # Single cases
    # ------------------------------------------------------------------

    async def get(self, case_id: str) -> CaseData:
        return await self.store.get(case_id)

    async def create(self, case_id: str, metadata: dict, content: str) -> CaseData:
        return await self.store.create(case_id, metadata, content)

    async def update(
        self,
        case_id: str,
        metadata: dict,
        content: str,
        version: Optional[str] = None,
    ) -> CaseData:
        return await self.store.update(case_id, metadata, content, expected_version=version)

    async def delete(self, case_id: str, version: Optional[str] = None) -> None:
        await self.store.delete(case_id, expected_version=version)
