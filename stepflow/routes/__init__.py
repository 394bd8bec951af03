# stepflow/routes/__init__.py
"""
API route handlers organized by domain.
"""

from stepflow.routes.flows import router as flows_router
from stepflow.routes.health import router as health_router

__all__ = [
    "flows_router",
    "health_router",
]
