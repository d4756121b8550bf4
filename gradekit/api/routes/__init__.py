from __future__ import annotations

from gradekit.api.routes.cache import router as cache_router
from gradekit.api.routes.github import router as github_router
from gradekit.api.routes.health import router as health_router
from gradekit.api.routes.rate_limits import router as rate_limits_router

__all__ = ["cache_router", "github_router", "health_router", "rate_limits_router"]
