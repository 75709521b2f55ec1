"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.imports import router as imports_router
from routes.reports import router as reports_router
from routes.users import router as users_router

__all__ = [
    "imports_router",
    "reports_router",
    "users_router",
]
