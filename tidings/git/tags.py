"""Release tag selection and ordering."""

import logging
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Iterable, Optional, Sequence

from tidings.models import Tag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexedTag:
    """A tag kept for release boundaries, with its skip flag."""

    tag: Tag
    skipped: bool = False


class TagIndex:
    """Filters the repository's tags down to release boundaries.

    ``ignore_tags`` is evaluated first and removes a tag from consideration
    entirely; ``tag_pattern`` then selects release tags; ``skip_tags`` marks
    the survivors whose release is dropped from the changelog while the tag
    itself still bounds the neighbouring releases.
    """

    def __init__(
        self,
        tags: Iterable[Tag],
        tag_pattern: Optional[str] = None,
        skip_tags: Optional[re.Pattern] = None,
        ignore_tags: Optional[re.Pattern] = None,
    ):
        self.tag_pattern = tag_pattern
        self.skip_tags = skip_tags
        self.ignore_tags = ignore_tags
        self._tags = [indexed for indexed in map(self._classify, tags) if indexed]

    def _classify(self, tag: Tag) -> Optional[IndexedTag]:
        if self.ignore_tags is not None and self.ignore_tags.search(tag.name):
            logger.debug("Ignoring tag %s", tag.name)
            return None
        if self.tag_pattern and not fnmatchcase(tag.name, self.tag_pattern):
            return None
        skipped = self.skip_tags is not None and bool(self.skip_tags.search(tag.name))
        if skipped:
            logger.debug("Skipping release for tag %s", tag.name)
        return IndexedTag(tag=tag, skipped=skipped)

    def __len__(self) -> int:
        return len(self._tags)

    def __iter__(self):
        return iter(self._tags)

    def ordered(
        self,
        topo_order: bool = False,
        hashes: Optional[Sequence[str]] = None,
    ) -> list[IndexedTag]:
        """Return the tags oldest first.

        Args:
            topo_order: Order by position in the commit traversal instead of
                        by tag creation time
            hashes: Commit hashes of the traversal, newest first, used for
                    topological order

        Returns:
            List of IndexedTag, oldest first
        """
        if topo_order:
            position = {h: i for i, h in enumerate(hashes or [])}
            # Tags outside the traversal are older than anything in it
            outside = len(position)
            return sorted(
                self._tags,
                key=lambda t: (-position.get(t.tag.commit_hash, outside), t.tag.name),
            )

        return sorted(
            self._tags,
            key=lambda t: (t.tag.timestamp is None, t.tag.timestamp, t.tag.name),
        )

    def boundaries(
        self,
        hashes: Sequence[str],
        topo_order: bool = False,
    ) -> dict[str, IndexedTag]:
        """Map commit hash to the tag that closes a release at that commit.

        When several tags point at one commit the newest one wins.

        Args:
            hashes: Commit hashes of the traversal, newest first
            topo_order: Tag ordering strategy

        Returns:
            Dictionary of commit hash to IndexedTag
        """
        in_range = set(hashes)
        result: dict[str, IndexedTag] = {}
        for indexed in self.ordered(topo_order, hashes):
            if indexed.tag.commit_hash in in_range:
                result[indexed.tag.commit_hash] = indexed
        return result
