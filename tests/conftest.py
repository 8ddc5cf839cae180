"""Shared pytest fixtures for tidings tests."""

import os
import subprocess
from datetime import datetime, timezone

import pytest

from tidings.models import Commit, RemoteInfo, Tag


def make_commit(
    sha: str,
    message: str,
    username: str | None = None,
    pr_number: int | None = None,
    **kwargs,
) -> Commit:
    """Build a commit with optional pull request metadata."""
    remote = RemoteInfo(pr_number=pr_number, username=username)
    return Commit(
        hash=sha,
        message=message,
        raw_message=message,
        author_name=kwargs.pop("author_name", "Test Author"),
        author_email=kwargs.pop("author_email", "test@example.com"),
        remote=remote,
        **kwargs,
    )


def make_tag(name: str, sha: str, day: int) -> Tag:
    """Build a tag created on the given day of January 2024."""
    return Tag(
        name=name,
        commit_hash=sha,
        timestamp=datetime(2024, 1, day, 12, 0, 0, tzinfo=timezone.utc),
    )


def git(repo_path, *args, date: str | None = None):
    """Run a git command in a repository with a fixed identity."""
    env = dict(os.environ)
    env.update(
        {
            "GIT_AUTHOR_NAME": "Test Author",
            "GIT_AUTHOR_EMAIL": "test@example.com",
            "GIT_COMMITTER_NAME": "Test Author",
            "GIT_COMMITTER_EMAIL": "test@example.com",
        }
    )
    if date:
        env["GIT_AUTHOR_DATE"] = date
        env["GIT_COMMITTER_DATE"] = date
    subprocess.run(
        ["git", *args], cwd=repo_path, capture_output=True, check=True, env=env
    )


def commit_file(repo_path, name: str, content: str, message: str, day: int):
    """Write a file and commit it on the given day of January 2024."""
    (repo_path / name).write_text(content)
    git(repo_path, "add", ".")
    git(repo_path, "commit", "-m", message, date=f"2024-01-{day:02d}T12:00:00+00:00")


@pytest.fixture
def history():
    """Commits newest first, as git log lists them."""
    return [
        make_commit("f" * 40, "wip stuff"),
        make_commit("e" * 40, "feat(cli): add generate command", username="bob", pr_number=5),
        make_commit("d" * 40, "docs: update readme", username="alice", pr_number=4),
        make_commit("c" * 40, "fix: handle empty input (#2)", username="alice", pr_number=2),
        make_commit("b" * 40, "feat: add parser (#1)", username="alice", pr_number=1),
        make_commit("a" * 40, "chore: initial commit"),
    ]


@pytest.fixture
def history_tags():
    """v0.1.0 on the parser commit and v0.2.0 on the readme commit."""
    return [
        make_tag("v0.1.0", "b" * 40, 2),
        make_tag("v0.2.0", "d" * 40, 4),
    ]


@pytest.fixture
def temp_git_repo(tmp_path):
    """Create a temporary git repository with two tagged releases."""
    repo_path = tmp_path / "test_repo"
    repo_path.mkdir()

    git(repo_path, "init")
    git(repo_path, "config", "user.email", "test@example.com")
    git(repo_path, "config", "user.name", "Test Author")
    git(repo_path, "config", "commit.gpgsign", "false")
    git(repo_path, "config", "tag.gpgsign", "false")

    commit_file(repo_path, "README.md", "# Test\n", "chore: initial commit", 1)
    commit_file(repo_path, "parser.py", "x = 1\n", "feat: add parser (#1)", 2)
    git(repo_path, "tag", "v0.1.0")
    commit_file(repo_path, "parser.py", "x = 2\n", "fix: handle empty input (#2)", 3)
    commit_file(repo_path, "README.md", "# Test\n\nDocs\n", "docs: update readme", 4)
    git(repo_path, "tag", "v0.2.0")
    commit_file(repo_path, "cli.py", "y = 1\n", "feat(cli): add generate command", 5)
    commit_file(repo_path, "notes.txt", "todo\n", "wip stuff", 6)

    return repo_path
