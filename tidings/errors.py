"""Exception taxonomy for tidings."""

import logging
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TidingsError(Exception):
    """Base class for all tidings errors."""

    pass


class ConfigError(TidingsError):
    """Raised for a malformed configuration value.

    Args:
        key: Dotted path of the offending key, e.g. ``git.skip_tags``
        message: What is wrong with it
    """

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"{key}: {message}")


class FetchError(TidingsError):
    """Raised when commits, tags or remote metadata cannot be retrieved."""

    pass


class ParseError(TidingsError):
    """Raised when a commit message does not follow the conventional grammar.

    Never escapes the commit pipeline, which recovers by marking the commit
    unconventional.
    """

    pass


class RenderError(TidingsError):
    """Raised when a template cannot be compiled or evaluated.

    Args:
        part: Which template failed (``header``, ``body`` or ``footer``)
        message: The template engine's message
        lineno: Line in that template, when known
    """

    def __init__(self, part: str, message: str, lineno: Optional[int] = None):
        self.part = part
        self.lineno = lineno
        location = f"{part}:{lineno}" if lineno else part
        super().__init__(f"{location}: {message}")


def retry_once(
    func: Callable[[], T],
    transient: tuple[type[BaseException], ...],
    what: str,
) -> T:
    """Call ``func``, retrying a single time on a transient failure.

    Args:
        func: Zero-argument callable performing the fetch
        transient: Exception types considered transient
        what: Description of the fetch, used in error messages

    Returns:
        Whatever ``func`` returns

    Raises:
        FetchError: If the retry fails as well
    """
    try:
        return func()
    except transient as e:
        logger.warning("Retrying %s after transient failure: %s", what, e)

    try:
        return func()
    except transient as e:
        raise FetchError(f"Failed to fetch {what}: {e}") from e
