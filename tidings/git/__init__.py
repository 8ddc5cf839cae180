"""Git operations module."""

from tidings.git.repository import GitRepository, GitRepositoryError
from tidings.git.parser import CommitMessageParser, ParsedMessage
from tidings.git.tags import IndexedTag, TagIndex

__all__ = [
    "GitRepository",
    "GitRepositoryError",
    "CommitMessageParser",
    "ParsedMessage",
    "IndexedTag",
    "TagIndex",
]
