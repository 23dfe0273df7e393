"""Main API router for v1."""
from fastapi import APIRouter

from naijapulse.api.v1.endpoints import admin, comments, polls, profiles, reports, sse

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(polls.router, tags=["Polls"])
api_router.include_router(comments.router, tags=["Comments"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
api_router.include_router(profiles.router, prefix="/me", tags=["Profile"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(sse.router, tags=["SSE"])
