"""
Case-related API models: listings, case detail, create/update requests.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CaseSummaryResponse(BaseModel):
    """Case metadata as shown in public listings."""
    id: str
    title: str
    description: str
    image: str
    date: str
    tags: list[str] = []


class CaseListResponse(BaseModel):
    """Response for public case listings."""
    cases: list[CaseSummaryResponse]
    count: int


class CaseIdsResponse(BaseModel):
    """All case ids."""
    ids: list[str]
    count: int


class CaseResponse(CaseSummaryResponse):
    """A full case with its markdown body."""
    content: str


class AdminCaseItem(CaseSummaryResponse):
    """A case row in the admin dashboard."""
    file_name: str
    word_count: int


class AdminCaseListResponse(BaseModel):
    """Response for the admin case listing."""
    cases: list[AdminCaseItem]
    count: int


class AdminCaseResponse(CaseResponse):
    """A full case plus the version token needed to update or delete it."""
    version: Optional[str] = None


class CaseFields(BaseModel):
    """Editable case fields. Blank required fields are rejected by the store."""
    title: str = ""
    description: str = ""
    image: Optional[str] = None
    date: str = ""
    tags: list[str] = Field(default_factory=list)
    content: str = ""

    def metadata(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "date": self.date,
            "tags": self.tags,
        }


class CaseCreateRequest(CaseFields):
    """Request body for creating a case."""
    id: str = ""


class CaseUpdateRequest(CaseFields):
    """Request body for updating a case."""
    version: Optional[str] = None


class CaseMutationResponse(BaseModel):
    """Result of a create, update, or delete."""
    success: bool = True
    id: str
    version: Optional[str] = None
