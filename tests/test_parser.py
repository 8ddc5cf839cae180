"""Tests for commit message parser."""

import pytest

from tidings.errors import ParseError
from tidings.git.parser import CommitMessageParser


@pytest.fixture
def parser():
    """Create a parser instance."""
    return CommitMessageParser()


class TestParseConventionalCommits:
    """Tests for parsing conventional commit format."""

    def test_feat_with_scope(self, parser):
        """Parse feat(scope): description format."""
        result = parser.parse("feat(auth): add login functionality")

        assert result.type == "feat"
        assert result.scope == "auth"
        assert result.description == "add login functionality"
        assert result.breaking is False

    def test_fix_without_scope(self, parser):
        """Parse fix: description format."""
        result = parser.parse("fix: resolve memory leak")

        assert result.type == "fix"
        assert result.scope is None
        assert result.description == "resolve memory leak"

    def test_type_is_lowercased(self, parser):
        """Uppercase types are normalized."""
        result = parser.parse("FEAT(Auth): Add Feature")

        assert result.type == "feat"
        assert result.scope == "Auth"

    def test_custom_type_accepted(self, parser):
        """Any alphabetic type is a valid conventional type."""
        result = parser.parse("release: cut 1.0")

        assert result.type == "release"

    def test_empty_scope_is_none(self, parser):
        """Empty parentheses mean no scope."""
        result = parser.parse("fix(): tidy up")

        assert result.scope is None


class TestBreakingChanges:
    """Tests for breaking change detection."""

    def test_bang_marker(self, parser):
        """An exclamation mark before the colon marks a breaking change."""
        result = parser.parse("refactor(api)!: drop v1 endpoints")

        assert result.breaking is True
        assert result.breaking_description == "drop v1 endpoints"

    def test_breaking_change_footer(self, parser):
        """A BREAKING CHANGE footer marks a breaking change."""
        message = """feat: new config format

The loader now reads TOML.

BREAKING CHANGE: JSON configs are no longer read"""

        result = parser.parse(message)

        assert result.breaking is True
        assert result.breaking_description == "JSON configs are no longer read"
        assert result.body == "The loader now reads TOML."

    def test_breaking_change_hyphen_footer(self, parser):
        """BREAKING-CHANGE is a synonym."""
        result = parser.parse("feat: x\n\nBREAKING-CHANGE: y")

        assert result.breaking is True

    def test_unconventional_breaking_detection(self, parser):
        """Messages that fail to parse can still carry a breaking footer."""
        assert parser.is_breaking_message("rewrite\n\nBREAKING CHANGE: all of it")
        assert not parser.is_breaking_message("rewrite everything")
        assert not parser.is_breaking_message("")


class TestParseBodyAndFooters:
    """Tests for parsing commit body and footers."""

    def test_message_with_body(self, parser):
        """Extract body from multi-line message."""
        message = """feat(auth): add login

This implements the OAuth2 flow for user authentication.
It supports Google and GitHub providers."""

        result = parser.parse(message)

        assert "OAuth2 flow" in result.body
        assert "Google and GitHub" in result.body
        assert result.footers == []

    def test_message_without_body(self, parser):
        """Single-line message has no body."""
        result = parser.parse("fix: quick fix")

        assert result.body is None

    def test_footers_are_parsed(self, parser):
        """Trailing token: value lines become footers."""
        message = """fix: handle timeouts

Retry once.

Reviewed-by: Alice
Refs #42"""

        result = parser.parse(message)

        assert result.body == "Retry once."
        assert result.footers == [("Reviewed-by", "Alice"), ("Refs", "42")]

    def test_multiline_footer_value(self, parser):
        """Lines that are not footers continue the previous footer."""
        message = "feat: x\n\nBREAKING CHANGE: first line\nsecond line"

        result = parser.parse(message)

        assert result.breaking_description == "first line\nsecond line"


class TestParseFailures:
    """Tests for messages that are not conventional."""

    def test_simple_message(self, parser):
        """A plain sentence is not conventional."""
        with pytest.raises(ParseError):
            parser.parse("quick fix for login")

    def test_missing_colon(self, parser):
        """Message without colon is not conventional."""
        with pytest.raises(ParseError):
            parser.parse("feat add new feature")

    def test_missing_description(self, parser):
        """A header without description is not conventional."""
        with pytest.raises(ParseError):
            parser.parse("feat: ")

    def test_empty_message(self, parser):
        """Empty and whitespace-only messages fail."""
        with pytest.raises(ParseError):
            parser.parse("")
        with pytest.raises(ParseError):
            parser.parse("   \n\t  ")
