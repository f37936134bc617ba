"""
Route modules for the Casebook API.

Each module defines a FastAPI APIRouter for a specific domain.
All routers are collected in ``all_routers`` for easy inclusion.
"""

from casebook.api.routes.system import router as system_router
from casebook.api.routes.cases import router as cases_router
from casebook.api.routes.admin import router as admin_router

all_routers = [
    system_router,
    cases_router,
    admin_router,
]

__all__ = ["all_routers"]
