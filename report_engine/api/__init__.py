"""
Report engine API package.

Router modules:
- reports: Content gap report, search, insights and export
- analytics: Chatbot analytics, conversation search, message preview and export
"""

from fastapi import APIRouter

from report_engine.api.analytics import router as analytics_router
from report_engine.api.reports import router as reports_router

# Both routers carry their own prefix
api_router = APIRouter()
api_router.include_router(reports_router)
api_router.include_router(analytics_router)

__all__ = [
    "api_router",
    "analytics_router",
    "reports_router",
]
