"""Router exports for FastAPI application."""
from .moderation import router as moderation_router
from .reports import router as reports_router

__all__ = ["moderation_router", "reports_router"]
