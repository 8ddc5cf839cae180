"""Configuration for tidings.

Environment settings are read once at import time (after loading a ``.env``
file); changelog configuration files are TOML documents loaded and
validated by :func:`load_config`.
"""

import logging
import os
import re
import tomllib
from pathlib import Path
from typing import Any, Literal, Optional

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from tidings.errors import ConfigError
from tidings.models import (
    ChangelogConfig,
    CommitParser,
    Config,
    GitConfig,
    LinkParser,
    RemoteConfig,
    TextProcessor,
)

logger = logging.getLogger(__name__)

# Load .env file from the working directory
load_dotenv()

# Remote API settings
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN")
GITHUB_API_URL = os.getenv("TIDINGS_GITHUB_API_URL", "https://api.github.com")
REMOTE_WORKERS = int(os.getenv("TIDINGS_REMOTE_WORKERS", "4"))
REQUEST_TIMEOUT = float(os.getenv("TIDINGS_REQUEST_TIMEOUT", "30"))

# Default config path override
CONFIG_PATH = os.getenv("TIDINGS_CONFIG")

# Config file names searched in the repository root, in order
CONFIG_FILE_NAMES = ["tidings.toml", "cliff.toml", ".cliff.toml"]

# "$1", "${1}", "${name}" and "$name" placeholders; "$$" is a literal dollar
PLACEHOLDER_PATTERN = re.compile(r"\$(?:\$|(\d+)|\{(\w+)\}|([A-Za-z_]\w*))")


def translate_replacement(replace: str) -> str:
    """Convert ``$1`` style placeholders to Python's ``\\g<1>`` syntax.

    Args:
        replace: Replacement string as written in the config file

    Returns:
        Replacement string usable with ``re.sub``
    """

    def substitute(match: re.Match) -> str:
        name = match.group(1) or match.group(2) or match.group(3)
        if name is None:
            return "$"
        return f"\\g<{name}>"

    return PLACEHOLDER_PATTERN.sub(substitute, replace)


def _compile(value: Any) -> re.Pattern:
    if isinstance(value, re.Pattern):
        return value
    if not isinstance(value, str):
        raise ValueError(f"expected a regex string, got {type(value).__name__}")
    try:
        return re.compile(value)
    except re.error as e:
        raise ValueError(f"invalid regex {value!r}: {e}")


def _optional_regex(value: Any) -> Optional[re.Pattern]:
    # An empty string disables the pattern
    if value is None or value == "":
        return None
    return _compile(value)


class _Entry(BaseModel):
    """An item of a list-of-tables setting."""

    model_config = ConfigDict(extra="ignore")


class _Section(BaseModel):
    """A top-level table; unknown keys are kept so they can be reported."""

    model_config = ConfigDict(extra="allow")

    def warn_unknown(self, name: str) -> None:
        for key in sorted(self.model_extra or {}):
            logger.warning("Ignoring unknown config key %s.%s", name, key)


class ProcessorSchema(_Entry):
    """``{ pattern, replace }`` of a preprocessor or postprocessor."""

    pattern: re.Pattern
    replace: StrictStr = ""

    @field_validator("pattern", mode="before")
    @classmethod
    def compile_pattern(cls, value: Any) -> re.Pattern:
        return _compile(value)

    @field_validator("replace")
    @classmethod
    def translate(cls, value: str) -> str:
        return translate_replacement(value)

    def build(self) -> TextProcessor:
        return TextProcessor(pattern=self.pattern, replace=self.replace)


class CommitParserSchema(_Entry):
    """One entry of ``git.commit_parsers``."""

    message: Optional[re.Pattern] = None
    body: Optional[re.Pattern] = None
    group: Optional[StrictStr] = None
    scope: Optional[StrictStr] = None
    default_scope: Optional[StrictStr] = None
    skip: StrictBool = False

    @field_validator("message", "body", mode="before")
    @classmethod
    def compile_patterns(cls, value: Any) -> Optional[re.Pattern]:
        return _optional_regex(value)

    def build(self) -> CommitParser:
        return CommitParser(**dict(self))


class LinkParserSchema(_Entry):
    """One entry of ``git.link_parsers``."""

    pattern: re.Pattern
    href: StrictStr
    text: Optional[StrictStr] = None

    @field_validator("pattern", mode="before")
    @classmethod
    def compile_pattern(cls, value: Any) -> re.Pattern:
        return _compile(value)

    @field_validator("href", "text")
    @classmethod
    def translate(cls, value: Optional[str]) -> Optional[str]:
        return translate_replacement(value) if value is not None else None

    def build(self) -> LinkParser:
        return LinkParser(pattern=self.pattern, href=self.href, text=self.text)


class RepositorySchema(_Entry):
    owner: Optional[StrictStr] = None
    repo: Optional[StrictStr] = None


class RemoteSchema(_Section):
    """``[remote]``, either flat or as ``[remote.github]``."""

    owner: Optional[StrictStr] = None
    repo: Optional[StrictStr] = None
    github: Optional[RepositorySchema] = None

    def build(self) -> RemoteConfig:
        identity = self.github or self
        return RemoteConfig(owner=identity.owner, repo=identity.repo)


class ChangelogSchema(_Section):
    """``[changelog]``."""

    header: StrictStr = ""
    body: StrictStr = ""
    footer: StrictStr = ""
    trim: StrictBool = True
    postprocessors: list[ProcessorSchema] = []

    def build(self) -> ChangelogConfig:
        return ChangelogConfig(
            header=self.header,
            body=self.body,
            footer=self.footer,
            trim=self.trim,
            postprocessors=[p.build() for p in self.postprocessors],
        )


class GitSchema(_Section):
    """``[git]``."""

    conventional_commits: StrictBool = True
    filter_unconventional: StrictBool = True
    split_commits: StrictBool = False
    commit_preprocessors: list[ProcessorSchema] = []
    commit_parsers: list[CommitParserSchema] = []
    link_parsers: list[LinkParserSchema] = []
    protect_breaking_commits: StrictBool = False
    filter_commits: StrictBool = False
    tag_pattern: Optional[StrictStr] = None
    skip_tags: Optional[re.Pattern] = None
    ignore_tags: Optional[re.Pattern] = None
    topo_order: StrictBool = False
    sort_commits: Literal["newest", "oldest"] = "oldest"
    limit_commits: Optional[StrictInt] = None

    @field_validator("skip_tags", "ignore_tags", mode="before")
    @classmethod
    def compile_tag_patterns(cls, value: Any) -> Optional[re.Pattern]:
        return _optional_regex(value)

    @field_validator("limit_commits")
    @classmethod
    def check_limit(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 1:
            raise ValueError("must be a positive integer")
        return value

    def build(self) -> GitConfig:
        return GitConfig(
            conventional_commits=self.conventional_commits,
            filter_unconventional=self.filter_unconventional,
            split_commits=self.split_commits,
            commit_preprocessors=[p.build() for p in self.commit_preprocessors],
            commit_parsers=[p.build() for p in self.commit_parsers],
            link_parsers=[p.build() for p in self.link_parsers],
            protect_breaking_commits=self.protect_breaking_commits,
            filter_commits=self.filter_commits,
            tag_pattern=self.tag_pattern or None,
            skip_tags=self.skip_tags,
            ignore_tags=self.ignore_tags,
            topo_order=self.topo_order,
            sort_commits=self.sort_commits,
            limit_commits=self.limit_commits,
        )


class ConfigSchema(BaseModel):
    """A whole configuration document."""

    remote: RemoteSchema = Field(default_factory=RemoteSchema)
    changelog: ChangelogSchema = Field(default_factory=ChangelogSchema)
    git: GitSchema = Field(default_factory=GitSchema)


def _dotted_key(loc: tuple) -> str:
    """Render a pydantic error location as ``git.commit_parsers[0].message``."""
    key = ""
    for part in loc:
        if isinstance(part, int):
            key += f"[{part}]"
        else:
            key = f"{key}.{part}" if key else str(part)
    return key


def _config_error(error: ValidationError, source: Optional[str]) -> ConfigError:
    details = error.errors()
    first = details[0]
    message = first["msg"]
    if len(details) > 1:
        message += f" (and {len(details) - 1} more)"
    return ConfigError(_dotted_key(first["loc"]) or source or "<config>", message)


def parse_config(text: str, source: Optional[str] = None) -> Config:
    """Parse and validate a TOML configuration document.

    Args:
        text: TOML text
        source: Where the text came from, for messages

    Returns:
        Validated Config

    Raises:
        ConfigError: On invalid TOML or any invalid value
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(source or "<config>", f"invalid TOML: {e}")

    try:
        schema = ConfigSchema.model_validate(data)
    except ValidationError as e:
        raise _config_error(e, source) from e

    for name in ("remote", "changelog", "git"):
        getattr(schema, name).warn_unknown(name)

    return Config(
        remote=schema.remote.build(),
        changelog=schema.changelog.build(),
        git=schema.git.build(),
        source=source,
    )


def load_config(path: str | Path) -> Config:
    """Load configuration from a TOML file.

    Args:
        path: Path to the configuration file

    Returns:
        Validated Config
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(str(path), f"cannot read config file: {e}")

    logger.debug("Loading config from %s", path)
    return parse_config(text, source=str(path))


def find_config_file(search_dir: str | Path | None = None) -> Optional[Path]:
    """Find a configuration file.

    Checks ``$TIDINGS_CONFIG`` first, then the known file names in
    ``search_dir`` (default: current directory).

    Returns:
        Path to the config file or None if not found
    """
    if CONFIG_PATH:
        return Path(CONFIG_PATH).expanduser()

    base = Path(search_dir) if search_dir else Path.cwd()
    for name in CONFIG_FILE_NAMES:
        path = base / name
        if path.is_file():
            return path

    return None
