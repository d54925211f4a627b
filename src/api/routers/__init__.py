"""API routers for OpenLesson."""

from src.api.routers import lessons_router

__all__ = ["lessons_router"]
