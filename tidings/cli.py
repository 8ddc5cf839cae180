"""CLI interface for tidings."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from tidings.changelog import Changelog
from tidings.config import find_config_file, load_config, parse_config
from tidings.defaults import DEFAULT_CONFIG
from tidings.errors import TidingsError
from tidings.git.repository import GitRepository
from tidings.models import Config
from tidings.remote import GitHubClient
from tidings.render import RenderContext, Renderer

# Status output goes to stderr so the changelog can be piped from stdout
console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Route library logging through the rich console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def resolve_config(config_path: str | None, search_dir: Path | None = None) -> Config:
    """Load the given config, a discovered one, or the built-in default.

    Args:
        config_path: Explicit path from --config, or None
        search_dir: Directory searched for a config file

    Returns:
        Validated Config
    """
    if config_path:
        return load_config(config_path)

    found = find_config_file(search_dir)
    if found:
        return load_config(found)

    return parse_config(DEFAULT_CONFIG, source="<default>")


@click.group()
@click.version_option(package_name="tidings")
def cli():
    """Tidings - changelog generator for git repositories."""
    pass


@cli.command()
@click.argument("repo_path", type=click.Path(exists=True), default=".")
@click.option("-c", "--config", "config_path", type=click.Path(exists=True), help="Config file (TOML)")
@click.option("-o", "--output", type=click.Path(), help="Write the changelog to this file")
@click.option("--prepend", type=click.Path(), help="Prepend the changelog to this file")
@click.option("-r", "--range", "rev_range", help="Revision range, e.g. v1.0.0..HEAD")
@click.option("--include-path", "paths", multiple=True, help="Only commits touching this path")
@click.option("--unreleased", is_flag=True, help="Only the unreleased changes")
@click.option("--latest", is_flag=True, help="Only the latest release")
@click.option("-t", "--tag", help="Version name for the unreleased changes")
@click.option("--oldest-first", is_flag=True, help="List the oldest release first")
@click.option("--offline", is_flag=True, help="Skip pull request lookups")
@click.option("--github-token", envvar="GITHUB_TOKEN", help="GitHub API token")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
def generate(
    repo_path,
    config_path,
    output,
    prepend,
    rev_range,
    paths,
    unreleased,
    latest,
    tag,
    oldest_first,
    offline,
    github_token,
    verbose,
):
    """Generate a changelog for a repository."""
    setup_logging(verbose)

    if unreleased and latest:
        raise click.UsageError("--unreleased and --latest cannot be used together")
    if output and prepend:
        raise click.UsageError("--output and --prepend cannot be used together")

    try:
        if verbose:
            console.print(f"Opening repository: {repo_path}")
        repo = GitRepository(repo_path)

        config = resolve_config(config_path, repo.root)
        if verbose:
            console.print(f"Using config: {config.source}")

        github = None
        if config.remote.is_configured and not offline:
            github = GitHubClient(config.remote, token=github_token)
            if verbose:
                console.print(
                    f"Fetching pull requests from {config.remote.owner}/{config.remote.repo}"
                )

        changelog = Changelog(repo, config, github=github, newest_first=not oldest_first)

        only = "unreleased" if unreleased else "latest" if latest else None
        releases = changelog.releases(
            rev_range=rev_range, paths=list(paths) or None, tag=tag, only=only
        )
        if verbose:
            total = sum(len(r.commits) for r in releases)
            console.print(f"Found {total} commits in {len(releases)} releases")

        document = changelog.renderer.render(releases)

        if prepend:
            path = Path(prepend)
            existing = path.read_text(encoding="utf-8") if path.exists() else ""
            path.write_text(document + existing, encoding="utf-8")
            console.print(f"[green]Changelog prepended to {prepend}[/green]")
        elif output:
            Path(output).write_text(document, encoding="utf-8")
            console.print(f"[green]Changelog written to {output}[/green]")
        else:
            click.echo(document, nl=False)

    except TidingsError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@cli.command()
@click.argument("path", type=click.Path(), default="tidings.toml")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init(path, force):
    """Write the default configuration file."""
    target = Path(path)
    if target.exists() and not force:
        console.print(f"[yellow]{path} already exists (use --force to overwrite)[/yellow]")
        sys.exit(1)

    target.write_text(DEFAULT_CONFIG, encoding="utf-8")
    console.print(f"[green]Config written to {path}[/green]")


@cli.command()
@click.option("-c", "--config", "config_path", type=click.Path(exists=True), help="Config file (TOML)")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
def check(config_path, verbose):
    """Validate a configuration file."""
    setup_logging(verbose)

    try:
        config = resolve_config(config_path)
        # Compiling the templates surfaces syntax errors
        Renderer(RenderContext.from_config(config))
    except TidingsError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    git = config.git
    table = Table(title=f"Config: {config.source}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    remote = (
        f"{config.remote.owner}/{config.remote.repo}" if config.remote.is_configured else "-"
    )
    table.add_row("Remote", remote)
    table.add_row("Conventional commits", str(git.conventional_commits))
    table.add_row("Filter unconventional", str(git.filter_unconventional))
    table.add_row("Split commits", str(git.split_commits))
    table.add_row("Commit preprocessors", str(len(git.commit_preprocessors)))
    table.add_row("Commit parsers", str(len(git.commit_parsers)))
    table.add_row("Link parsers", str(len(git.link_parsers)))
    table.add_row("Tag pattern", git.tag_pattern or "-")
    table.add_row("Sort commits", git.sort_commits)
    table.add_row("Limit commits", str(git.limit_commits) if git.limit_commits else "-")
    table.add_row("Postprocessors", str(len(config.changelog.postprocessors)))

    console.print(table)
    console.print("[green]Config is valid[/green]")


def main():
    """Main entry point for console script."""
    cli()


if __name__ == "__main__":
    main()
