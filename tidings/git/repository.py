"""GitPython wrapper acting as the commit and tag source."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from tidings.errors import FetchError, retry_once
from tidings.models import Commit, Tag

logger = logging.getLogger(__name__)


class GitRepositoryError(FetchError):
    """Exception raised for git repository errors."""

    pass


class GitRepository:
    """Wrapper around GitPython for repository operations.

    Provides commits for a revision range and the repository's tags,
    converted to tidings models.
    """

    def __init__(self, path: str):
        """Initialize the repository wrapper.

        Args:
            path: Path to the git repository

        Raises:
            GitRepositoryError: If path is not a valid git repository
        """
        self.path = Path(path)

        try:
            self._repo = Repo(self.path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError):
            raise GitRepositoryError(f"Not a git repository: {path}")

    @property
    def name(self) -> str:
        """Get the repository name from the working tree directory."""
        if self._repo.working_tree_dir:
            return Path(self._repo.working_tree_dir).name
        return self.path.name

    @property
    def root(self) -> Path:
        """Top-level directory of the working tree."""
        return Path(self._repo.working_tree_dir or self.path)

    def commits(
        self,
        rev_range: Optional[str] = None,
        paths: Optional[Sequence[str]] = None,
    ) -> list[Commit]:
        """Collect commits newest first, as ``git log`` lists them.

        Args:
            rev_range: Revision or range such as ``v1.0.0..HEAD`` (default: HEAD)
            paths: Only include commits touching these paths

        Returns:
            List of Commit objects

        Raises:
            GitRepositoryError: If git cannot resolve the range
        """
        kwargs = {}
        if paths:
            kwargs["paths"] = list(paths)

        def fetch() -> list[Commit]:
            return [
                self._convert_commit(git_commit)
                for git_commit in self._repo.iter_commits(rev=rev_range, **kwargs)
            ]

        try:
            commits = retry_once(fetch, (OSError,), f"commits for {rev_range or 'HEAD'}")
        except GitCommandError as e:
            raise GitRepositoryError(f"Git command failed: {e}")
        except ValueError as e:
            # Raised by GitPython for an unborn HEAD
            raise GitRepositoryError(f"Cannot read history: {e}")

        logger.debug("Fetched %d commits for %s", len(commits), rev_range or "HEAD")
        return commits

    def tags(self) -> list[Tag]:
        """Collect every tag in the repository.

        Returns:
            List of Tag objects in GitPython's order (by name)
        """

        def fetch() -> list[Tag]:
            tags = []
            for tag_ref in self._repo.tags:
                try:
                    tags.append(self._convert_tag(tag_ref))
                except ValueError as e:
                    # Tags of trees or blobs have no commit
                    logger.warning("Skipping tag %s: %s", tag_ref.name, e)
            return tags

        try:
            tags = retry_once(fetch, (OSError,), "tags")
        except GitCommandError as e:
            raise GitRepositoryError(f"Git command failed: {e}")

        logger.debug("Fetched %d tags", len(tags))
        return tags

    def _convert_commit(self, git_commit) -> Commit:
        """Convert a GitPython commit to our Commit model.

        Args:
            git_commit: GitPython Commit object

        Returns:
            Our Commit dataclass
        """
        message = git_commit.message
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")

        timestamp = datetime.fromtimestamp(git_commit.committed_date, tz=timezone.utc)

        return Commit(
            hash=git_commit.hexsha,
            message=message,
            raw_message=message,
            author_name=git_commit.author.name or "",
            author_email=git_commit.author.email or "",
            timestamp=timestamp,
        )

    def _convert_tag(self, tag_ref) -> Tag:
        """Convert a GitPython TagReference, preferring annotated tag data."""
        commit = tag_ref.commit
        tag_object = tag_ref.tag

        if tag_object is not None:
            timestamp = datetime.fromtimestamp(tag_object.tagged_date, tz=timezone.utc)
            message = tag_object.message
        else:
            timestamp = datetime.fromtimestamp(commit.committed_date, tz=timezone.utc)
            message = None

        return Tag(
            name=tag_ref.name,
            commit_hash=commit.hexsha,
            timestamp=timestamp,
            message=message,
        )
