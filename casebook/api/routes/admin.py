"""
Admin case routes: /admin/cases, /admin/cases/{id}

Every route requires the shared admin secret in the X-API-Key header.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query

from casebook.api.dependencies import get_directory, require_admin
from casebook.api.models.cases import (
    AdminCaseItem,
    AdminCaseListResponse,
    AdminCaseResponse,
    CaseCreateRequest,
    CaseMutationResponse,
    CaseUpdateRequest,
)
from casebook.services.case_service import CaseDirectory
from casebook.store import CaseStore

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("/cases", response_model=AdminCaseListResponse)
async def list_cases(directory: CaseDirectory = Depends(get_directory)):
    """
    List all cases for the dashboard, newest first.

    Each row carries the file name and the plain-text length of the body.
    """
    cases = await directory.list_with_word_counts()
    items = [
        AdminCaseItem(**asdict(case), file_name=CaseStore.file_name(case.id))
        for case in cases
    ]
    return AdminCaseListResponse(cases=items, count=len(items))


@router.post("/cases", response_model=CaseMutationResponse)
async def create_case(
    request: CaseCreateRequest,
    directory: CaseDirectory = Depends(get_directory),
):
    """
    Create a new case.

    ``id``, ``title``, ``description``, ``date`` and ``content`` are required.
    ``image`` defaults to ``/images/{id}-cover.jpg``.
    """
    case = await directory.create(request.id, request.metadata(), request.content)
    return CaseMutationResponse(id=case.id, version=case.version)


@router.get("/cases/{case_id}", response_model=AdminCaseResponse)
async def get_case(case_id: str, directory: CaseDirectory = Depends(get_directory)):
    """
    Get a case for editing, including its current version token.
    """
    case = await directory.get(case_id)
    return AdminCaseResponse(**asdict(case))


@router.put("/cases/{case_id}", response_model=CaseMutationResponse)
async def update_case(
    case_id: str,
    request: CaseUpdateRequest,
    directory: CaseDirectory = Depends(get_directory),
):
    """
    Replace a case's metadata and body.

    Pass the ``version`` returned by GET to reject the update when someone
    else changed the case in the meantime (409).
    """
    case = await directory.update(
        case_id, request.metadata(), request.content, version=request.version
    )
    return CaseMutationResponse(id=case.id, version=case.version)


@router.delete("/cases/{case_id}", response_model=CaseMutationResponse)
async def delete_case(
    case_id: str,
    version: Optional[str] = Query(None, description="Version token from GET"),
    directory: CaseDirectory = Depends(get_directory),
):
    """
    Delete a case permanently.
    """
    await directory.delete(case_id, version=version)
    return CaseMutationResponse(id=case_id)
