"""Validation of GitHub repository URLs submitted with assessments."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlparse

_GITHUB_HOSTS = {"github.com", "www.github.com"}
_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class GitHubUrlValidation:
    is_valid: bool
    error: str | None = None
    owner: str | None = None
    repo: str | None = None


def validate_github_url(url: str | None) -> GitHubUrlValidation:
    """Check that ``url`` points at a GitHub repository and extract owner/repo.

    Extra path segments (``/tree/main/src``) and a trailing ``.git`` are
    ignored, so any URL copied from a repository page is accepted.

    Examples:
        >>> validate_github_url("https://github.com/octo/hello.git").repo
        'hello'
        >>> validate_github_url("not a url").error
        'Please provide a valid URL'
    """
    if not url or not url.strip():
        return GitHubUrlValidation(False, error="Please provide a GitHub repository URL")

    parsed = urlparse(url.strip())
    if not parsed.scheme or not parsed.netloc:
        return GitHubUrlValidation(False, error="Please provide a valid URL")

    if parsed.hostname not in _GITHUB_HOSTS:
        return GitHubUrlValidation(False, error="Please provide a GitHub repository URL")

    segments = [s for s in parsed.path.split("/") if s]
    if len(segments) < 2:
        return GitHubUrlValidation(False, error="Invalid GitHub repository URL format")

    owner = segments[0]
    repo = segments[1].removesuffix(".git")
    if not _NAME_RE.match(owner) or not _NAME_RE.match(repo):
        return GitHubUrlValidation(False, error="Invalid repository owner or name")

    return GitHubUrlValidation(True, owner=owner, repo=repo)
