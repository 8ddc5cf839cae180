"""Hosting provider integrations."""

from tidings.remote.github import GitHubClient

__all__ = ["GitHubClient"]
