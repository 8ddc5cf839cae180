"""Commit preprocessing, parsing and filtering."""

import logging
from dataclasses import replace
from typing import Iterable, Optional

from tidings.errors import ParseError
from tidings.git.parser import CommitMessageParser
from tidings.models import Commit, CommitParser, GitConfig, Link

logger = logging.getLogger(__name__)


class CommitFilterPipeline:
    """Turns raw commits into changelog entries.

    Stages run in a fixed order: preprocessors, commit splitting,
    conventional parsing, unconventional filtering, commit parsers
    (grouping and skip rules), then link extraction. Input order is
    preserved; split commits take the position of their source commit.
    """

    def __init__(self, config: GitConfig, parser: Optional[CommitMessageParser] = None):
        """Initialize the pipeline.

        Args:
            config: Validated git configuration (regexes already compiled)
            parser: Conventional commit parser to use
        """
        self.config = config
        self._parser = parser or CommitMessageParser()

    def process(self, commits: Iterable[Commit]) -> list[Commit]:
        """Run every stage over the commits.

        Args:
            commits: Raw commits in traversal order

        Returns:
            Processed commits in the same order
        """
        result = []
        total = 0
        for commit in commits:
            total += 1
            commit = self.preprocess(commit)
            for entry in self.split(commit):
                processed = self.process_entry(entry)
                if processed is not None:
                    result.append(processed)

        logger.debug("Kept %d entries from %d commits", len(result), total)
        return result

    def process_entry(self, commit: Commit) -> Optional[Commit]:
        """Parse, filter and annotate one entry.

        Returns:
            The processed commit, or None if it was filtered out
        """
        if self.config.conventional_commits:
            commit = self.parse_conventional(commit)
            if self.config.filter_unconventional and commit.conventional is False:
                if not self._is_protected(commit):
                    logger.debug("Dropping unconventional commit %s", commit.short_hash)
                    return None

        commit = self.apply_commit_parsers(commit)
        if commit is None:
            return None

        return self.extract_links(commit)

    def preprocess(self, commit: Commit) -> Commit:
        """Apply the message substitutions in configured order."""
        if not self.config.commit_preprocessors:
            return commit

        message = commit.message
        for processor in self.config.commit_preprocessors:
            message = processor.apply(message)
        return replace(commit, message=message.strip())

    def split(self, commit: Commit) -> list[Commit]:
        """Expand a commit into one entry per non-blank line when enabled."""
        if not self.config.split_commits:
            return [commit]

        lines = [line.strip() for line in commit.message.split("\n") if line.strip()]
        if not lines:
            return [commit]
        return [replace(commit, message=line) for line in lines]

    def parse_conventional(self, commit: Commit) -> Commit:
        """Parse the conventional commit grammar, tagging failures unconventional."""
        try:
            parsed = self._parser.parse(commit.message)
        except ParseError as e:
            logger.debug("Commit %s is unconventional: %s", commit.short_hash, e)
            return replace(
                commit,
                conventional=False,
                breaking=self._parser.is_breaking_message(commit.message),
            )

        return replace(
            commit,
            type=parsed.type,
            scope=parsed.scope,
            description=parsed.description,
            body=parsed.body,
            breaking=parsed.breaking,
            breaking_description=parsed.breaking_description,
            footers=tuple(parsed.footers),
            conventional=True,
        )

    def apply_commit_parsers(self, commit: Commit) -> Optional[Commit]:
        """Assign the group of the first matching parser, honoring skip rules.

        Returns:
            The grouped commit, or None if skipped or unmatched under
            ``filter_commits``
        """
        parser = self._match_parser(commit)

        if parser is None:
            if self.config.filter_commits:
                logger.debug("Dropping unmatched commit %s", commit.short_hash)
                return None
            return commit

        if parser.skip and not self._is_protected(commit):
            logger.debug("Skipping commit %s", commit.short_hash)
            return None

        scope = parser.scope or commit.scope or parser.default_scope
        return replace(commit, group=parser.group, scope=scope)

    def _match_parser(self, commit: Commit) -> Optional[CommitParser]:
        for parser in self.config.commit_parsers:
            if parser.matches(commit):
                return parser
        return None

    def extract_links(self, commit: Commit) -> Commit:
        """Collect links for every link parser match in the processed message.

        Split entries only see their own line, and references removed by
        preprocessors produce no links.
        """
        if not self.config.link_parsers:
            return commit

        links = list(commit.links)
        for link_parser in self.config.link_parsers:
            for match in link_parser.pattern.finditer(commit.message):
                href = match.expand(link_parser.href)
                label = match.expand(link_parser.text) if link_parser.text else match.group(0)
                links.append(Link(text=label, href=href))
        return replace(commit, links=tuple(links))

    def _is_protected(self, commit: Commit) -> bool:
        return self.config.protect_breaking_commits and commit.breaking
