"""Resolution of submitted GitHub repository URLs.

Graders open the same repository many times during a grading session; the
resolved coordinates are cached under ``github:<owner>/<repo>`` so repeated
lookups within ``CacheTTL.GITHUB_REPO`` are served from memory.
"""

from __future__ import annotations

import logging

from gradekit.core.errors import ValidationAppError
from gradekit.schemas.github import GitHubRepository
from gradekit.utils.github_validation import validate_github_url
from gradekit.utils.ttl_cache import CacheKeys, CacheTTL, TTLCache

logger = logging.getLogger(__name__)

GITHUB_WEB_ROOT = "https://github.com"
GITHUB_API_ROOT = "https://api.github.com"


class RepositoryService:
    """Validate repository URLs and memoize their canonical form."""

    def __init__(self, cache: TTLCache, *, ttl_seconds: float | None = None) -> None:
        self._cache = cache
        self._ttl_seconds = CacheTTL.GITHUB_REPO if ttl_seconds is None else ttl_seconds

    async def resolve(self, url: str) -> GitHubRepository:
        """Return canonical coordinates for the repository behind ``url``.

        Raises:
            ValidationAppError: If ``url`` is not a GitHub repository URL.
        """
        validation = validate_github_url(url)
        if not validation.is_valid:
            raise ValidationAppError(
                code="invalid_github_url",
                message=validation.error or "Invalid GitHub repository URL",
                details={"field": "url"},
            )

        owner, repo = validation.owner, validation.repo

        async def _describe() -> GitHubRepository:
            logger.info("github.resolve", extra={"owner": owner, "repo": repo})
            return GitHubRepository(
                owner=owner,
                repo=repo,
                html_url=f"{GITHUB_WEB_ROOT}/{owner}/{repo}",
                api_url=f"{GITHUB_API_ROOT}/repos/{owner}/{repo}",
                clone_url=f"{GITHUB_WEB_ROOT}/{owner}/{repo}.git",
            )

        return await self._cache.with_cache(
            CacheKeys.github(owner, repo),
            _describe,
            self._ttl_seconds,
        )
