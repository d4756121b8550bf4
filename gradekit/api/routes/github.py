from __future__ import annotations

from fastapi import APIRouter, Depends

from gradekit.core.auth import verify_api_key
from gradekit.core.config import Settings
from gradekit.core.lifespan import get_cache, get_settings
from gradekit.core.rate_limit import Operation, rate_limited
from gradekit.schemas.github import GitHubRepository, ResolveRepositoryRequest
from gradekit.services.github_service import RepositoryService
from gradekit.utils.ttl_cache import TTLCache

router = APIRouter(prefix="/github", tags=["GitHub"])


def get_repository_service(
    cache: TTLCache = Depends(get_cache),
    app_config: Settings = Depends(get_settings),
) -> RepositoryService:
    return RepositoryService(cache, ttl_seconds=app_config.cache.github_repo_ttl_seconds)


@router.post(
    "/resolve",
    response_model=GitHubRepository,
    dependencies=[
        Depends(verify_api_key),
        Depends(rate_limited(Operation.GITHUB_FETCH)),
    ],
)
async def resolve_repository(
    payload: ResolveRepositoryRequest,
    service: RepositoryService = Depends(get_repository_service),
) -> GitHubRepository:
    """Validate a submitted repository URL and return its canonical coordinates.

    Counts against the caller's ``github_fetch`` budget. Results are cached per
    ``owner/repo``.

    Raises:
        ValidationAppError: 400 if the URL is not a GitHub repository URL.
        RateLimitAppError: 429 once the caller's budget is spent.
    """
    return await service.resolve(payload.url)
