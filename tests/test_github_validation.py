"""Tests for GitHub repository URL validation."""

import pytest

from gradekit.utils.github_validation import validate_github_url


@pytest.mark.parametrize(
    ("url", "owner", "repo"),
    [
        ("https://github.com/octocat/Hello-World", "octocat", "Hello-World"),
        ("https://github.com/octocat/Hello-World.git", "octocat", "Hello-World"),
        ("https://github.com/octocat/Hello-World/tree/main/src", "octocat", "Hello-World"),
        ("  https://www.github.com/student_1/final.project/  ", "student_1", "final.project"),
    ],
)
def test_valid_urls(url: str, owner: str, repo: str) -> None:
    result = validate_github_url(url)

    assert result.is_valid is True
    assert (result.owner, result.repo) == (owner, repo)
    assert result.error is None


@pytest.mark.parametrize(
    ("url", "error"),
    [
        ("", "Please provide a GitHub repository URL"),
        (None, "Please provide a GitHub repository URL"),
        ("github.com/octocat/Hello-World", "Please provide a valid URL"),
        ("https://gitlab.com/octocat/Hello-World", "Please provide a GitHub repository URL"),
        ("https://github.com/octocat", "Invalid GitHub repository URL format"),
        ("https://github.com/octo cat/repo", "Invalid repository owner or name"),
    ],
)
def test_invalid_urls(url, error: str) -> None:
    result = validate_github_url(url)

    assert result.is_valid is False
    assert result.error == error
