"""
API package for the HR records backend.

This package aggregates all API routers to be included in the FastAPI
application. The API is versioned under ``/api/v1``.
"""

from fastapi import APIRouter, Depends
from .v1.auth import router as auth_router
from .v1.branches import router as branches_router
from .v1.users import router as users_router
from .v1.employees import router as employees_router
from .v1.documents import router as documents_router
from .v1.branch_documents import router as branch_documents_router
from .v1.health import router as health_router
from ..core.auth import get_current_principal
from ..core.rate_limit import rate_limit_dependency

api_router = APIRouter()
protected = [Depends(get_current_principal), Depends(rate_limit_dependency)]
api_router.include_router(auth_router, dependencies=[Depends(rate_limit_dependency)])
api_router.include_router(branches_router, dependencies=protected)
api_router.include_router(users_router, dependencies=protected)
api_router.include_router(employees_router, dependencies=protected)
api_router.include_router(documents_router, dependencies=protected)
api_router.include_router(branch_documents_router, dependencies=protected)
api_router.include_router(health_router)
