"""
Public case routes: /cases, /cases/latest, /cases/ids, /cases/{id}
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from casebook.api.dependencies import get_directory
from casebook.api.models.cases import (
    CaseIdsResponse,
    CaseListResponse,
    CaseResponse,
    CaseSummaryResponse,
)
from casebook.services.case_service import CaseDirectory

router = APIRouter(tags=["Cases"])


def _listing(cases) -> CaseListResponse:
    items = [CaseSummaryResponse(**asdict(case)) for case in cases]
    return CaseListResponse(cases=items, count=len(items))


@router.get("/cases", response_model=CaseListResponse)
async def list_cases(directory: CaseDirectory = Depends(get_directory)):
    """
    List all cases, newest first.

    Dates are compared as ISO-8601 strings; cases sharing a date keep
    their storage order.
    """
    return _listing(await directory.list_sorted())


@router.get("/cases/latest", response_model=CaseListResponse)
async def latest_cases(
    request: Request,
    count: Optional[int] = Query(None, ge=0, description="Number of cases to return"),
    directory: CaseDirectory = Depends(get_directory),
):
    """
    The most recent cases, for the front page.

    Returns every case when fewer than ``count`` exist.
    """
    if count is None:
        count = request.app.state.config.DEFAULT_LATEST_COUNT
    return _listing(await directory.latest(count))


@router.get("/cases/ids", response_model=CaseIdsResponse)
async def list_case_ids(directory: CaseDirectory = Depends(get_directory)):
    """Ids of every case, for building static page paths."""
    ids = await directory.case_ids()
    return CaseIdsResponse(ids=ids, count=len(ids))


@router.get("/cases/{case_id}", response_model=CaseResponse)
async def get_case(case_id: str, directory: CaseDirectory = Depends(get_directory)):
    """
    Get a single case with its markdown body.
    """
    case = await directory.get(case_id)
    return CaseResponse(**asdict(case))
