"""Partitioning of commits into releases."""

import logging
from collections import defaultdict
from typing import Optional, Sequence

from tidings.git.tags import IndexedTag, TagIndex
from tidings.models import Commit, Contributor, GitConfig, Release, Tag

logger = logging.getLogger(__name__)

ONLY_CHOICES = ("unreleased", "latest")


class Grouper:
    """Buckets processed commits into releases.

    Every commit lands in exactly one release: the one closed by the
    nearest tag at or after it in history, or the unreleased head when no
    newer tag exists. Releases closed by a skipped tag are dropped along
    with their commits.
    """

    def __init__(
        self,
        sort_commits: str = "oldest",
        limit_commits: Optional[int] = None,
        topo_order: bool = False,
        newest_first: bool = True,
    ):
        """Initialize the grouper.

        Args:
            sort_commits: "newest" or "oldest" order inside a release
            limit_commits: Keep only this many of the newest commits
            topo_order: Order tags by commit graph instead of creation time
            newest_first: Emit the newest release first
        """
        self.sort_commits = sort_commits
        self.limit_commits = limit_commits
        self.topo_order = topo_order
        self.newest_first = newest_first

    @classmethod
    def from_config(cls, config: GitConfig, newest_first: bool = True) -> "Grouper":
        return cls(
            sort_commits=config.sort_commits,
            limit_commits=config.limit_commits,
            topo_order=config.topo_order,
            newest_first=newest_first,
        )

    def group(
        self,
        commits: Sequence[Commit],
        tag_index: TagIndex,
        traversal: Optional[Sequence[str]] = None,
        tag: Optional[str] = None,
        only: Optional[str] = None,
    ) -> list[Release]:
        """Build the releases for a changelog.

        Args:
            commits: Processed commits, newest first
            tag_index: Release tags
            traversal: Hashes of every fetched commit, newest first. Tags on
                       commits removed by filters still bound releases.
            tag: Version name to give the unreleased commits
            only: Restrict output to "unreleased" or "latest"

        Returns:
            Releases in emission order
        """
        if only is not None and only not in ONLY_CHOICES:
            raise ValueError(f"only must be one of {ONLY_CHOICES}, got {only!r}")

        if traversal is None:
            traversal = list(dict.fromkeys(c.hash for c in commits))

        releases, head = self._partition(commits, tag_index, traversal, tag)
        traversal_rank = {id(r): i for i, r in enumerate(releases)}
        if not self.topo_order:
            releases = self._order_by_creation(releases, head, tag_index)
        self._link_previous(releases)

        # The head release stays "unreleased" even when --tag names it
        if only == "unreleased":
            releases = [r for r in releases if r is head]
        elif only == "latest":
            tagged = [r for r in releases if r is not head]
            releases = tagged[-1:]

        releases = self._apply_limit(releases, traversal_rank)

        contributors_by_release = self.derive_contributors(releases)
        for release in releases:
            release.contributors = contributors_by_release[id(release)]
            if self.sort_commits == "newest":
                release.commits.reverse()

        if self.newest_first:
            releases.reverse()

        logger.debug(
            "Grouped %d commits into %d releases",
            sum(len(r.commits) for r in releases),
            len(releases),
        )
        return releases

    def _partition(
        self,
        commits: Sequence[Commit],
        tag_index: TagIndex,
        traversal: Sequence[str],
        tag: Optional[str],
    ) -> tuple[list[Release], Optional[Release]]:
        """Split commits at tag boundaries, in traversal order oldest first.

        Returns the releases and the release of commits newer than every
        tag, if there are any.
        """
        entries: dict[str, list[Commit]] = defaultdict(list)
        for commit in commits:
            entries[commit.hash].append(commit)

        ordered_hashes = list(traversal)
        known = set(ordered_hashes)
        # Entries whose hash was not traversed belong to the newest end
        extra = [h for h in dict.fromkeys(c.hash for c in commits) if h not in known]
        ordered_hashes = extra + ordered_hashes

        boundaries = tag_index.boundaries(ordered_hashes, topo_order=self.topo_order)

        releases: list[Release] = []
        bucket: list[Commit] = []
        for commit_hash in reversed(ordered_hashes):
            # Split entries keep their original line order
            bucket.extend(entries.get(commit_hash, []))
            boundary: Optional[IndexedTag] = boundaries.get(commit_hash)
            if boundary is None:
                continue
            if boundary.skipped:
                logger.debug("Dropping %d commits of skipped tag %s", len(bucket), boundary.tag)
            elif bucket:
                releases.append(Release(version=boundary.tag, commits=bucket))
            bucket = []

        head = None
        if bucket:
            version = None
            if tag:
                version = Tag(name=tag, commit_hash=ordered_hashes[0])
            head = Release(version=version, commits=bucket)
            releases.append(head)

        return releases, head

    @staticmethod
    def _order_by_creation(
        releases: list[Release], head: Optional[Release], tag_index: TagIndex
    ) -> list[Release]:
        """Order tagged releases by tag creation time; the head release stays last."""
        tag_order = {
            indexed.tag.name: i
            for i, indexed in enumerate(tag_index.ordered(topo_order=False))
        }
        ordered = sorted(
            (r for r in releases if r is not head),
            key=lambda r: tag_order.get(r.version.name, len(tag_order)),
        )
        if head is not None:
            ordered.append(head)
        return ordered

    @staticmethod
    def _link_previous(releases: list[Release]) -> None:
        previous = None
        for release in releases:
            release.previous = previous
            previous = release

    def _apply_limit(
        self, releases: list[Release], traversal_rank: dict[int, int]
    ) -> list[Release]:
        """Drop the commits beyond ``limit_commits`` from the oldest end of the traversal.

        Args:
            releases: Releases in emission order
            traversal_rank: ``id(release)`` to its position in the traversal
        """
        if self.limit_commits is None:
            return releases

        excess = sum(len(r.commits) for r in releases) - self.limit_commits
        for release in sorted(releases, key=lambda r: traversal_rank[id(r)]):
            if excess <= 0:
                break
            removed = min(excess, len(release.commits))
            del release.commits[:removed]
            excess -= removed

        return [r for r in releases if r.commits]

    @staticmethod
    def derive_contributors(releases: Sequence[Release]) -> dict[int, list[Contributor]]:
        """Compute each release's contributors and first-time flags.

        A single pass over the releases, oldest first: a username is a
        first-time contributor in the first release where it appears.
        Only the releases passed in are considered.

        Args:
            releases: Releases, oldest first, commits oldest first

        Returns:
            Dictionary of ``id(release)`` to its contributors
        """
        seen: set[str] = set()
        result: dict[int, list[Contributor]] = {}

        for release in releases:
            contributors: dict[str, Contributor] = {}
            for commit in release.commits:
                username = commit.remote.username
                if not username:
                    continue
                existing = contributors.get(username)
                if existing is None:
                    contributors[username] = Contributor(
                        username=username,
                        pr_number=commit.remote.pr_number,
                        pr_title=commit.remote.pr_title,
                        is_first_time=username not in seen,
                    )
                elif existing.pr_number is None and commit.remote.pr_number is not None:
                    existing.pr_number = commit.remote.pr_number
                    existing.pr_title = commit.remote.pr_title
            seen.update(contributors)
            result[id(release)] = list(contributors.values())

        return result
