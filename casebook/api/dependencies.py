"""
Common API dependencies: the case directory and admin authentication.
"""

import hmac

from fastapi import HTTPException, Request, Security
from fastapi.security import APIKeyHeader

from casebook.services.case_service import CaseDirectory

# Admin API key security
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_directory(request: Request) -> CaseDirectory:
    """The case directory built at startup."""
    return request.app.state.directory


async def require_admin(
    request: Request,
    api_key: str = Security(api_key_header),
) -> str:
    """
    Verify the shared admin secret from the X-API-Key header.
    Admin routes are closed entirely when no secret is configured.
    """
    expected = request.app.state.config.ADMIN_API_KEY
    if not expected:
        raise HTTPException(
            status_code=503,
            detail="Admin access not configured. Set the ADMIN_API_KEY environment variable.",
        )

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing API key. Include 'X-API-Key' header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not hmac.compare_digest(api_key.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(
            status_code=403,
            detail="Invalid API key",
        )

    return api_key
