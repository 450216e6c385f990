"""
API route handlers organized by domain.
"""

from prosperian.routes.google_places import router as google_places_router
from prosperian.routes.health import router as health_router
from prosperian.routes.linkedin_sales import router as linkedin_sales_router
from prosperian.routes.pronto import router as pronto_router
from prosperian.routes.pronto_workflows import router as pronto_workflows_router
from prosperian.routes.workflow import router as workflow_router

__all__ = [
    "google_places_router",
    "health_router",
    "linkedin_sales_router",
    "pronto_router",
    "pronto_workflows_router",
    "workflow_router",
]
