from __future__ import annotations

from pydantic import BaseModel, Field


class ResolveRepositoryRequest(BaseModel):
    url: str = Field(
        ...,
        description="GitHub repository URL as submitted by the student",
        examples=["https://github.com/octocat/Hello-World"],
    )


class GitHubRepository(BaseModel):
    """Canonical coordinates of a submitted GitHub repository."""

    owner: str
    repo: str
    html_url: str
    api_url: str
    clone_url: str
