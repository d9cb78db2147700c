"""API routers."""

from clipdex.routers import auth, platforms, clips, pages, health

__all__ = ["auth", "platforms", "clips", "pages", "health"]
