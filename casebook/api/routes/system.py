"""
System routes: /health
"""

from fastapi import APIRouter, Depends

from casebook.api.dependencies import get_directory
from casebook.api.models.system import HealthResponse
from casebook.services.case_service import CaseDirectory

API_VERSION = "1.0.0"

router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthResponse)
async def health_check(directory: CaseDirectory = Depends(get_directory)):
    """
    Health check endpoint.
    Returns the service status and which storage backend is active.
    """
    return HealthResponse(
        status="ok",
        version=API_VERSION,
        backend=directory.backend_name,
    )
