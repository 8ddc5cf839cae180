"""Data models for changelog generation."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class RemoteInfo:
    """Pull request metadata fetched from the hosting provider."""

    pr_number: Optional[int] = None
    pr_title: Optional[str] = None
    username: Optional[str] = None
    pr_labels: tuple[str, ...] = ()


@dataclass(frozen=True)
class Link:
    """A link extracted from a commit message by a link parser."""

    text: str
    href: str


@dataclass(frozen=True)
class Commit:
    """A single changelog entry.

    Commits are produced once by the commit source and never mutated;
    pipeline stages derive new instances with ``dataclasses.replace``.
    ``conventional`` is None when conventional parsing is disabled.
    """

    hash: str
    message: str
    author_name: str
    author_email: str = ""
    timestamp: Optional[datetime] = None
    remote: RemoteInfo = field(default_factory=RemoteInfo)
    raw_message: str = ""
    type: Optional[str] = None
    scope: Optional[str] = None
    description: Optional[str] = None
    body: Optional[str] = None
    breaking: bool = False
    breaking_description: Optional[str] = None
    footers: tuple[tuple[str, str], ...] = ()
    conventional: Optional[bool] = None
    group: Optional[str] = None
    links: tuple[Link, ...] = ()

    @property
    def id(self) -> str:
        """Alias of ``hash`` used by templates."""
        return self.hash

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


@dataclass(frozen=True)
class Tag:
    """A release tag."""

    name: str
    commit_hash: str
    timestamp: Optional[datetime] = None
    message: Optional[str] = None

    def __str__(self) -> str:
        return self.name


@dataclass
class Contributor:
    """A pull request author appearing in a release."""

    username: str
    pr_number: Optional[int] = None
    pr_title: Optional[str] = None
    is_first_time: bool = False


@dataclass
class Release:
    """Commits bounded by a tag, or the unreleased head when version is None."""

    version: Optional[Tag] = None
    commits: list[Commit] = field(default_factory=list)
    previous: Optional["Release"] = None
    contributors: list[Contributor] = field(default_factory=list)

    @property
    def is_unreleased(self) -> bool:
        return self.version is None

    @property
    def timestamp(self) -> Optional[datetime]:
        """Tag timestamp, or the newest commit timestamp when untagged."""
        if self.version is not None and self.version.timestamp is not None:
            return self.version.timestamp
        stamps = [c.timestamp for c in self.commits if c.timestamp is not None]
        return max(stamps) if stamps else None


@dataclass(frozen=True)
class TextProcessor:
    """A compiled regex substitution (commit preprocessor or postprocessor)."""

    pattern: re.Pattern
    replace: str = ""

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replace, text)


@dataclass(frozen=True)
class CommitParser:
    """A grouping rule matched against commit messages."""

    message: Optional[re.Pattern] = None
    body: Optional[re.Pattern] = None
    group: Optional[str] = None
    scope: Optional[str] = None
    default_scope: Optional[str] = None
    skip: bool = False

    def matches(self, commit: Commit) -> bool:
        """Check whether every configured pattern matches the commit.

        A parser with no patterns never matches.
        """
        if self.message is None and self.body is None:
            return False
        if self.message is not None and not self.message.search(commit.message):
            return False
        if self.body is not None and not self.body.search(commit.body or ""):
            return False
        return True


@dataclass(frozen=True)
class LinkParser:
    """Extracts links such as issue references from commit messages."""

    pattern: re.Pattern
    href: str
    text: Optional[str] = None


@dataclass
class RemoteConfig:
    """Hosting repository identity used for URL construction."""

    owner: Optional[str] = None
    repo: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.owner and self.repo)


@dataclass
class ChangelogConfig:
    """The ``[changelog]`` section."""

    header: str = ""
    body: str = ""
    footer: str = ""
    trim: bool = True
    postprocessors: list[TextProcessor] = field(default_factory=list)


@dataclass
class GitConfig:
    """The ``[git]`` section."""

    conventional_commits: bool = True
    filter_unconventional: bool = True
    split_commits: bool = False
    commit_preprocessors: list[TextProcessor] = field(default_factory=list)
    commit_parsers: list[CommitParser] = field(default_factory=list)
    link_parsers: list[LinkParser] = field(default_factory=list)
    protect_breaking_commits: bool = False
    filter_commits: bool = False
    tag_pattern: Optional[str] = None
    skip_tags: Optional[re.Pattern] = None
    ignore_tags: Optional[re.Pattern] = None
    topo_order: bool = False
    sort_commits: str = "oldest"
    limit_commits: Optional[int] = None


@dataclass
class Config:
    """A fully validated configuration file."""

    remote: RemoteConfig = field(default_factory=RemoteConfig)
    changelog: ChangelogConfig = field(default_factory=ChangelogConfig)
    git: GitConfig = field(default_factory=GitConfig)
    source: Optional[str] = None
