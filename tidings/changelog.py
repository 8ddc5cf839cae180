"""Changelog generation: source -> filter -> group -> render."""

import logging
from typing import Optional, Sequence

from tidings.git.repository import GitRepository
from tidings.git.tags import TagIndex
from tidings.models import Config, Release
from tidings.pipeline import CommitFilterPipeline, Grouper
from tidings.remote import GitHubClient
from tidings.render import RenderContext, Renderer

logger = logging.getLogger(__name__)


class Changelog:
    """Runs the whole pipeline for one repository and configuration.

    The filter pipeline and renderer are built in the constructor, so an
    invalid template fails before any history is read.
    """

    def __init__(
        self,
        repo: GitRepository,
        config: Config,
        github: Optional[GitHubClient] = None,
        newest_first: bool = True,
    ):
        """Initialize the changelog.

        Args:
            repo: Commit and tag source
            config: Validated configuration
            github: Client for pull request metadata; None skips remote lookups
            newest_first: Emit the newest release first
        """
        self.repo = repo
        self.config = config
        self.github = github
        self.pipeline = CommitFilterPipeline(config.git)
        self.grouper = Grouper.from_config(config.git, newest_first=newest_first)
        self.renderer = Renderer(RenderContext.from_config(config))

    def releases(
        self,
        rev_range: Optional[str] = None,
        paths: Optional[Sequence[str]] = None,
        tag: Optional[str] = None,
        only: Optional[str] = None,
    ) -> list[Release]:
        """Fetch, process and group the history.

        Args:
            rev_range: Revision range to read (default: all of HEAD)
            paths: Only include commits touching these paths
            tag: Version name for unreleased commits
            only: "unreleased" or "latest" to restrict the output

        Returns:
            Releases in emission order
        """
        raw_commits = self.repo.commits(rev_range, paths=paths)
        tag_index = TagIndex(
            self.repo.tags(),
            tag_pattern=self.config.git.tag_pattern,
            skip_tags=self.config.git.skip_tags,
            ignore_tags=self.config.git.ignore_tags,
        )
        logger.info("Read %d commits and %d release tags", len(raw_commits), len(tag_index))

        commits = self.pipeline.process(raw_commits)
        if self.github is not None:
            commits = self.github.annotate(commits)

        return self.grouper.group(
            commits,
            tag_index,
            traversal=[c.hash for c in raw_commits],
            tag=tag,
            only=only,
        )

    def generate(self, **kwargs) -> str:
        """Produce the changelog document.

        Accepts the same keyword arguments as :meth:`releases`.
        """
        return self.renderer.render(self.releases(**kwargs))
