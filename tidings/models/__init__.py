"""Data models for tidings."""

from tidings.models.dataclasses import (
    ChangelogConfig,
    Commit,
    CommitParser,
    Config,
    Contributor,
    GitConfig,
    Link,
    LinkParser,
    Release,
    RemoteConfig,
    RemoteInfo,
    Tag,
    TextProcessor,
)

__all__ = [
    "ChangelogConfig",
    "Commit",
    "CommitParser",
    "Config",
    "Contributor",
    "GitConfig",
    "Link",
    "LinkParser",
    "Release",
    "RemoteConfig",
    "RemoteInfo",
    "Tag",
    "TextProcessor",
]
