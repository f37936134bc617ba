"""
Pydantic models (schemas) for API request/response types.

All models are re-exported here for convenience:
    from casebook.api.models import CaseResponse, CaseCreateRequest, ...
"""

from casebook.api.models.system import (
    HealthResponse,
    ErrorResponse,
)
from casebook.api.models.cases import (
    CaseSummaryResponse,
    CaseListResponse,
    CaseIdsResponse,
    CaseResponse,
    AdminCaseItem,
    AdminCaseListResponse,
    AdminCaseResponse,
    CaseFields,
    CaseCreateRequest,
    CaseUpdateRequest,
    CaseMutationResponse,
)

__all__ = [
    # System
    "HealthResponse",
    "ErrorResponse",
    # Cases
    "CaseSummaryResponse",
    "CaseListResponse",
    "CaseIdsResponse",
    "CaseResponse",
    "AdminCaseItem",
    "AdminCaseListResponse",
    "AdminCaseResponse",
    "CaseFields",
    "CaseCreateRequest",
    "CaseUpdateRequest",
    "CaseMutationResponse",
]
