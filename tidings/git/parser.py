"""Commit message parser for conventional commits."""

import re
from dataclasses import dataclass, field
from typing import Optional

from tidings.errors import ParseError


@dataclass
class ParsedMessage:
    """Result of parsing a conventional commit message."""

    type: str
    scope: Optional[str]
    description: str
    body: Optional[str]
    breaking: bool
    breaking_description: Optional[str] = None
    footers: list[tuple[str, str]] = field(default_factory=list)


class CommitMessageParser:
    """Parser for conventional commit messages.

    Parses messages in the format: type(scope)!: description

    Examples:
        feat(auth): add login functionality
        fix: resolve memory leak
        refactor(api)!: drop the v1 endpoints
    """

    # Pattern for the header line: type(scope)!: description
    HEADER_PATTERN = re.compile(
        r"^(?P<type>[a-zA-Z]+)"  # type
        r"(?:\((?P<scope>[^()\r\n]*)\))?"  # optional scope in parentheses
        r"(?P<breaking>!)?"  # optional breaking marker
        r":\s+"  # colon and whitespace
        r"(?P<description>\S.*)$",  # description (rest of first line)
    )

    # Pattern for a footer line: "Token: value" or "Token #value"
    FOOTER_PATTERN = re.compile(
        r"^(?P<token>BREAKING[ -]CHANGE|[A-Za-z][\w-]*)(?::\s|\s#)(?P<value>.*)$"
    )

    BREAKING_TOKENS = ("BREAKING CHANGE", "BREAKING-CHANGE")

    def parse(self, message: str) -> ParsedMessage:
        """Parse a commit message into its components.

        Args:
            message: The full commit message

        Returns:
            ParsedMessage with type, scope, description, body, footers
            and the breaking flag

        Raises:
            ParseError: If the header line is not a conventional commit header
        """
        if not message or not message.strip():
            raise ParseError("empty commit message")

        lines = message.strip().split("\n")
        first_line = lines[0].strip()

        match = self.HEADER_PATTERN.match(first_line)
        if not match:
            raise ParseError(f"not a conventional commit: {first_line!r}")

        scope = match.group("scope")
        body, footers = self._split_body("\n".join(lines[1:]))

        breaking_description = None
        for token, value in footers:
            if token in self.BREAKING_TOKENS:
                breaking_description = value
                break

        breaking = bool(match.group("breaking")) or breaking_description is not None
        if breaking and breaking_description is None:
            breaking_description = match.group("description").strip()

        return ParsedMessage(
            type=match.group("type").lower(),
            scope=scope.strip() if scope and scope.strip() else None,
            description=match.group("description").strip(),
            body=body,
            breaking=breaking,
            breaking_description=breaking_description,
            footers=footers,
        )

    def _split_body(self, text: str) -> tuple[Optional[str], list[tuple[str, str]]]:
        """Separate the free-form body from the trailing footer paragraph.

        Args:
            text: Everything after the header line

        Returns:
            Tuple of (body or None, list of (token, value) footers)
        """
        paragraphs = [p.strip("\n") for p in re.split(r"\n\s*\n", text) if p.strip()]
        if not paragraphs:
            return None, []

        footers: list[tuple[str, str]] = []
        last = paragraphs[-1].split("\n")
        if self.FOOTER_PATTERN.match(last[0]):
            for line in last:
                footer = self.FOOTER_PATTERN.match(line)
                if footer:
                    footers.append((footer.group("token"), footer.group("value").strip()))
                elif footers:
                    # Continuation of the previous footer value
                    token, value = footers[-1]
                    footers[-1] = (token, f"{value}\n{line.strip()}".strip())
            paragraphs = paragraphs[:-1]

        body = "\n\n".join(paragraphs) if paragraphs else None
        return body, footers

    def is_breaking_message(self, message: str) -> bool:
        """Check a message that failed to parse for a breaking-change footer."""
        if not message:
            return False
        return any(
            re.search(rf"^{token}:", message, re.MULTILINE)
            for token in self.BREAKING_TOKENS
        )
