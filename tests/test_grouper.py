"""Tests for grouping commits into releases."""

import re
from collections import Counter

import pytest

from tidings.git.tags import TagIndex
from tidings.models import Release
from tidings.pipeline import Grouper

from conftest import make_commit, make_tag


def versions(releases):
    return [r.version.name if r.version else None for r in releases]


def hashes(release):
    return [c.hash[0] for c in release.commits]


class TestPartition:
    """Tests for release boundaries."""

    def test_releases_newest_first(self, history, history_tags):
        releases = Grouper().group(history, TagIndex(history_tags))

        assert versions(releases) == [None, "v0.2.0", "v0.1.0"]

    def test_oldest_first(self, history, history_tags):
        releases = Grouper(newest_first=False).group(history, TagIndex(history_tags))

        assert versions(releases) == ["v0.1.0", "v0.2.0", None]

    def test_commits_belong_to_nearest_newer_tag(self, history, history_tags):
        releases = Grouper().group(history, TagIndex(history_tags))

        assert [hashes(r) for r in releases] == [["e", "f"], ["c", "d"], ["a", "b"]]

    def test_partition_has_no_overlap_or_omission(self, history, history_tags):
        """The releases' commits are exactly the input multiset."""
        releases = Grouper().group(history, TagIndex(history_tags))

        grouped = Counter(c.hash for r in releases for c in r.commits)
        assert grouped == Counter(c.hash for c in history)

    def test_no_tags_means_single_unreleased(self, history):
        releases = Grouper().group(history, TagIndex([]))

        assert versions(releases) == [None]
        assert len(releases[0].commits) == len(history)

    def test_no_unreleased_when_head_is_tagged(self, history, history_tags):
        tags = history_tags + [make_tag("v0.3.0", "f" * 40, 6)]

        releases = Grouper().group(history, TagIndex(tags))

        assert versions(releases) == ["v0.3.0", "v0.2.0", "v0.1.0"]

    def test_previous_links(self, history, history_tags):
        unreleased, second, first = Grouper().group(history, TagIndex(history_tags))

        assert unreleased.previous is second
        assert second.previous is first
        assert first.previous is None

    def test_tag_names_unreleased(self, history, history_tags):
        releases = Grouper().group(history, TagIndex(history_tags), tag="v0.3.0")

        assert versions(releases) == ["v0.3.0", "v0.2.0", "v0.1.0"]
        assert releases[0].version.commit_hash == "f" * 40

    def test_tag_kept_when_only_unreleased(self, history, history_tags):
        releases = Grouper().group(
            history, TagIndex(history_tags), tag="v0.3.0", only="unreleased"
        )

        assert versions(releases) == ["v0.3.0"]
        assert releases[0].previous.version.name == "v0.2.0"

    def test_filtered_tagged_commit_still_bounds(self, history, history_tags):
        """A tag on a filtered-out commit still closes its release."""
        traversal = [c.hash for c in history]
        kept = [c for c in history if not c.hash.startswith("b")]

        releases = Grouper().group(kept, TagIndex(history_tags), traversal=traversal)

        assert [hashes(r) for r in releases] == [["e", "f"], ["c", "d"], ["a"]]

    def test_split_entries_share_a_release(self, history_tags):
        commits = [
            make_commit("d" * 40, "docs: two"),
            make_commit("d" * 40, "docs: one"),
            make_commit("b" * 40, "feat: x"),
        ]

        releases = Grouper().group(commits, TagIndex(history_tags))

        assert [c.message for c in releases[0].commits] == ["docs: two", "docs: one"]


class TestTagRules:
    """Tests for skipped and ignored tags."""

    def test_skipped_tag_drops_its_release(self, history, history_tags):
        index = TagIndex(history_tags, skip_tags=re.compile("v0.1.0"))

        releases = Grouper().group(history, index)

        assert versions(releases) == [None, "v0.2.0"]
        assert hashes(releases[1]) == ["c", "d"]

    def test_ignored_tag_merges_releases(self, history, history_tags):
        index = TagIndex(history_tags, ignore_tags=re.compile("v0.1.0"))

        releases = Grouper().group(history, index)

        assert versions(releases) == [None, "v0.2.0"]
        assert hashes(releases[1]) == ["a", "b", "c", "d"]

    def test_creation_time_order_of_releases(self, history):
        """Without topo_order, releases follow tag dates."""
        tags = [make_tag("v9.0.0", "b" * 40, 20), make_tag("v1.0.0", "d" * 40, 4)]

        releases = Grouper(newest_first=False, topo_order=False).group(history, TagIndex(tags))

        assert versions(releases) == ["v1.0.0", "v9.0.0", None]

    def test_topological_order_of_releases(self, history):
        tags = [make_tag("v9.0.0", "b" * 40, 20), make_tag("v1.0.0", "d" * 40, 4)]

        releases = Grouper(newest_first=False, topo_order=True).group(history, TagIndex(tags))

        assert versions(releases) == ["v9.0.0", "v1.0.0", None]


class TestSortCommits:
    """Tests for the sort_commits policy."""

    def test_newest_is_reverse_of_oldest(self, history, history_tags):
        oldest = Grouper(sort_commits="oldest").group(history, TagIndex(history_tags))
        newest = Grouper(sort_commits="newest").group(history, TagIndex(history_tags))

        for old, new in zip(oldest, newest):
            assert [c.hash for c in new.commits] == list(reversed([c.hash for c in old.commits]))

    def test_newest_order(self, history, history_tags):
        releases = Grouper(sort_commits="newest").group(history, TagIndex(history_tags))

        assert hashes(releases[0]) == ["f", "e"]


class TestLimitCommits:
    """Tests for limit_commits."""

    def test_keeps_newest_commits(self, history, history_tags):
        releases = Grouper(limit_commits=3).group(history, TagIndex(history_tags))

        assert versions(releases) == [None, "v0.2.0"]
        assert [hashes(r) for r in releases] == [["e", "f"], ["d"]]

    def test_limit_follows_history_not_tag_dates(self, history):
        """Commits are dropped from the oldest end of history even when tag dates disagree."""
        tags = [make_tag("v9.0.0", "b" * 40, 20), make_tag("v1.0.0", "d" * 40, 4)]

        releases = Grouper(limit_commits=3, newest_first=False, topo_order=False).group(
            history, TagIndex(tags)
        )

        assert versions(releases) == ["v1.0.0", None]
        assert [hashes(r) for r in releases] == [["d"], ["e", "f"]]

    def test_limit_larger_than_history(self, history, history_tags):
        releases = Grouper(limit_commits=100).group(history, TagIndex(history_tags))

        assert sum(len(r.commits) for r in releases) == len(history)


class TestOnly:
    """Tests for restricting output to one release."""

    def test_only_unreleased(self, history, history_tags):
        releases = Grouper().group(history, TagIndex(history_tags), only="unreleased")

        assert versions(releases) == [None]

    def test_only_latest_keeps_previous(self, history, history_tags):
        releases = Grouper().group(history, TagIndex(history_tags), only="latest")

        assert versions(releases) == ["v0.2.0"]
        assert releases[0].previous.version.name == "v0.1.0"

    def test_invalid_only(self, history, history_tags):
        with pytest.raises(ValueError):
            Grouper().group(history, TagIndex(history_tags), only="everything")


class TestContributors:
    """Tests for contributor derivation."""

    def test_first_time_contributors(self):
        """alice in v1.0 and v1.1, bob only in v1.1."""
        commits = [
            make_commit("c" * 40, "feat: z", username="bob", pr_number=3),
            make_commit("b" * 40, "feat: y", username="alice", pr_number=2),
            make_commit("a" * 40, "feat: x", username="alice", pr_number=1),
        ]
        tags = [make_tag("v1.0", "a" * 40, 1), make_tag("v1.1", "c" * 40, 2)]

        v11, v10 = Grouper().group(commits, TagIndex(tags))

        first_time = {c.username: c.is_first_time for c in v11.contributors}
        assert first_time == {"alice": False, "bob": True}
        assert [(c.username, c.is_first_time) for c in v10.contributors] == [("alice", True)]

    def test_contributor_keeps_first_pr(self, history, history_tags):
        releases = Grouper().group(history, TagIndex(history_tags))

        v020 = releases[1]
        assert [(c.username, c.pr_number) for c in v020.contributors] == [("alice", 2)]

    def test_commits_without_username_ignored(self, history, history_tags):
        releases = Grouper().group(history, TagIndex(history_tags))

        assert [c.username for c in releases[0].contributors] == ["bob"]

    def test_classification_depends_on_window(self, history, history_tags):
        """Restricting the output changes who counts as first-time."""
        releases = Grouper().group(history, TagIndex(history_tags), only="latest")

        assert releases[0].contributors[0].is_first_time is True

    def test_derive_contributors_directly(self):
        first = Release(commits=[make_commit("a" * 40, "x", username="carol", pr_number=9)])
        second = Release(commits=[make_commit("b" * 40, "y", username="carol")])

        result = Grouper.derive_contributors([first, second])

        assert result[id(first)][0].is_first_time is True
        assert result[id(second)][0].is_first_time is False
        assert result[id(second)][0].pr_number is None
