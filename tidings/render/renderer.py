"""Changelog rendering using Jinja2."""

import logging
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from jinja2 import Environment, StrictUndefined, Template, TemplateError, TemplateSyntaxError

from tidings.errors import RenderError
from tidings.models import Config, Release, RemoteConfig, TextProcessor

logger = logging.getLogger(__name__)

TEMPLATE_PARTS = ("header", "body", "footer")


@dataclass
class RenderContext:
    """Everything needed to render a changelog, built once per run."""

    header: str = ""
    body: str = ""
    footer: str = ""
    trim: bool = True
    postprocessors: list[TextProcessor] = field(default_factory=list)
    remote: RemoteConfig = field(default_factory=RemoteConfig)

    @classmethod
    def from_config(cls, config: Config) -> "RenderContext":
        return cls(
            header=config.changelog.header,
            body=config.changelog.body,
            footer=config.changelog.footer,
            trim=config.changelog.trim,
            postprocessors=list(config.changelog.postprocessors),
            remote=config.remote,
        )


def split_filter(value: str, pat: str = "\n") -> list[str]:
    """Split a string on a separator."""
    return str(value).split(pat)


def filter_by_attribute(items: Iterable[Any], attribute: str, value: Any = None) -> list[Any]:
    """Keep the items whose attribute equals ``value``."""
    return [item for item in items if _lookup(item, attribute) == value]


def upper_first(value: str) -> str:
    """Uppercase the first character only."""
    value = str(value)
    return value[:1].upper() + value[1:]


def date_filter(value: Optional[datetime], format: str = "%Y-%m-%d") -> str:
    """Format a datetime with strftime; empty for missing values."""
    if value is None:
        return ""
    return value.strftime(format)


def _lookup(item: Any, attribute: str) -> Any:
    # Dotted paths like "remote.username" are supported
    for part in attribute.split("."):
        if isinstance(item, dict):
            item = item.get(part)
        else:
            item = getattr(item, part, None)
    return item


def _template_lineno(error: BaseException) -> Optional[int]:
    """Find the template line of a runtime error from Jinja's rewritten traceback."""
    lineno = getattr(error, "lineno", None)
    if lineno:
        return lineno
    for frame in reversed(traceback.extract_tb(error.__traceback__)):
        if frame.filename == "<template>":
            return frame.lineno
    return None


class Renderer:
    """Render header, per-release body and footer into one document.

    Templates are compiled once with ``StrictUndefined``, so a reference
    to an undefined variable fails the whole render instead of printing
    an empty string.
    """

    def __init__(self, context: RenderContext):
        """Initialize the renderer and compile the templates.

        Args:
            context: Template sources and rendering options

        Raises:
            RenderError: If a template does not compile
        """
        self.context = context
        self.env = Environment(
            undefined=StrictUndefined,
            autoescape=False,
            trim_blocks=context.trim,
            lstrip_blocks=context.trim,
            keep_trailing_newline=True,
        )
        self.env.filters["split"] = split_filter
        self.env.filters["filter"] = filter_by_attribute
        self.env.filters["upper_first"] = upper_first
        self.env.filters["date"] = date_filter

        self._templates: dict[str, Template] = {
            part: self._compile(part, getattr(context, part)) for part in TEMPLATE_PARTS
        }

    def _compile(self, part: str, source: str) -> Template:
        try:
            return self.env.from_string(source)
        except TemplateSyntaxError as e:
            raise RenderError(part, e.message or str(e), e.lineno) from e

    def _render_part(self, part: str, variables: dict[str, Any]) -> str:
        try:
            return self._templates[part].render(**variables)
        except TemplateError as e:
            raise RenderError(part, str(e), _template_lineno(e)) from e

    @property
    def remote_context(self) -> dict[str, Any]:
        """Remote identity as templates see it (``remote.owner`` or ``remote.github.owner``)."""
        remote = {"owner": self.context.remote.owner, "repo": self.context.remote.repo}
        return {**remote, "github": dict(remote)}

    def release_context(self, release: Release) -> dict[str, Any]:
        """Build the variables a body template sees for one release."""
        previous = release.previous
        return {
            "version": release.version.name if release.version else None,
            "message": release.version.message if release.version else None,
            "commits": release.commits,
            "commit_id": release.version.commit_hash if release.version else None,
            "timestamp": release.timestamp,
            "previous": {
                "version": previous.version.name if previous and previous.version else None,
                "commits": previous.commits if previous else [],
                "timestamp": previous.timestamp if previous else None,
            },
            "contributors": release.contributors,
            "github": {"contributors": release.contributors},
            "remote": self.remote_context,
        }

    def render(self, releases: Sequence[Release]) -> str:
        """Render the complete changelog.

        Args:
            releases: Releases in emission order

        Returns:
            The final document with postprocessors applied

        Raises:
            RenderError: If any template part fails; nothing is emitted
        """
        shared = {"releases": list(releases), "remote": self.remote_context}

        parts = [self._render_part("header", shared)]
        for release in releases:
            parts.append(self._render_part("body", self.release_context(release)))
        parts.append(self._render_part("footer", shared))

        if self.context.trim:
            document = "\n\n".join(p.strip() for p in parts if p.strip())
            document = f"{document}\n" if document else ""
        else:
            document = "".join(parts)

        for processor in self.context.postprocessors:
            document = processor.apply(document)

        logger.debug("Rendered %d releases into %d characters", len(releases), len(document))
        return document
