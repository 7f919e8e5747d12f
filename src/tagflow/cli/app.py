"""Command-line interface for tagflow."""

from __future__ import annotations

from pathlib import Path

import click

from tagflow import __version__
from tagflow.cli.commands.changelog import check_options as check_changelog_options
from tagflow.cli.commands.changelog import run_changelog
from tagflow.cli.commands.release import run_release
from tagflow.cli.commands.update import check_update_options, run_update
from tagflow.cli.commands.version import run_semver, run_version
from tagflow.cli.context import AppContext, reporting_errors
from tagflow.core.release import check_release_options
from tagflow.log import setup_logging
from tagflow.vcs.git import GitRepository

pass_app = click.make_pass_decorator(AppContext)


class AliasedGroup(click.Group):
    """Group accepting the one-letter command aliases."""

    aliases = {"v": "version", "s": "semver", "u": "update", "c": "changelog", "r": "release"}

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        _, cmd, rest = super().resolve_command(ctx, args)
        return (cmd.name if cmd else None), cmd, rest


@click.group(cls=AliasedGroup)
@click.version_option(__version__, prog_name="tagflow")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Explicit config file (disables tagflow.yml discovery).",
)
@click.option("-p", "--tag-pattern", help="Override the release tag matcher regex.")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, tag_pattern: str | None, verbose: bool) -> None:
    """Semantic versions, changelogs and GitHub releases from conventional commits."""
    setup_logging(verbose)
    ctx.obj = AppContext(config_path=config_path, tag_pattern=tag_pattern, verbose=verbose)


@cli.command("version")
@click.option("-f", "--from-tag", help="Use this tag instead of the latest version tag.")
@pass_app
def version_command(app: AppContext, from_tag: str | None) -> None:
    """Print the current version."""
    with reporting_errors(app.err_console):
        config = app.load_config()
        run_version(GitRepository(app.cwd), config, from_tag)


@cli.command("semver")
@click.option("-f", "--from-tag", help="Count commits after this tag instead of the latest version tag.")
@pass_app
def semver_command(app: AppContext, from_tag: str | None) -> None:
    """Compute the next semantic bump type."""
    with reporting_errors(app.err_console):
        config = app.load_config()
        run_semver(GitRepository(app.cwd), config, from_tag)


@cli.command("update")
@click.argument("target", required=False, metavar="[TARGET]")
@click.option("-f", "--from-tag", help="Count commits after this tag instead of the latest version tag.")
@click.option("-o", "--commit", is_flag=True, help="Commit the updated version file.")
@click.option("-m", "--message", help="Custom commit message (requires --commit).")
@click.option("-t", "--tag", is_flag=True, help="Tag the new commit (requires --commit).")
@pass_app
def update_command(
    app: AppContext,
    target: str | None,
    from_tag: str | None,
    commit: bool,
    message: str | None,
    tag: bool,
) -> None:
    """Update the project version file. TARGET: major|minor|patch or a semver."""
    with reporting_errors(app.err_console):
        check_update_options(commit=commit, message=message, tag=tag)
        config = app.load_config()
        run_update(
            GitRepository(app.cwd),
            config,
            app.cwd,
            target=target,
            from_tag=from_tag,
            commit=commit,
            message=message,
            tag=tag,
            console=app.console,
        )


@cli.command("changelog")
@click.argument("target", required=False, metavar="[TARGET]")
@click.option("-r", "--rebuild", is_flag=True, help="Regenerate the changelog from all tags.")
@click.option("-d", "--dry-run", is_flag=True, help="Print the changelog instead of writing it.")
@click.option("-o", "--commit", is_flag=True, help="Commit if the changelog is the only changed file.")
@click.option("-m", "--message", help="Custom commit message (requires --commit).")
@pass_app
def changelog_command(
    app: AppContext,
    target: str | None,
    rebuild: bool,
    dry_run: bool,
    commit: bool,
    message: str | None,
) -> None:
    """Update the changelog with the next release section. TARGET: major|minor|patch or a semver."""
    with reporting_errors(app.err_console):
        check_changelog_options(target=target, rebuild=rebuild, dry_run=dry_run, commit=commit, message=message)
        config = app.load_config()
        run_changelog(
            GitRepository(app.cwd),
            config,
            app.cwd,
            target=target,
            rebuild=rebuild,
            dry_run=dry_run,
            commit=commit,
            message=message,
            console=app.console,
        )


@cli.command("release")
@click.argument("target", required=False, metavar="[TARGET]")
@click.option("-r", "--rebuild", is_flag=True, help="Reconcile releases for every tag, deleting stray ones.")
@click.option("-n", "--notes-only", is_flag=True, help="Print the release notes only.")
@click.option("-d", "--dry-run", is_flag=True, help="Show release actions without changing anything.")
@click.option("-a", "--prerelease", is_flag=True, help="Mark the release as a pre-release (requires TARGET).")
@click.option("-t", "--token", help="GitHub token.")
@click.option("-o", "--owner", help="GitHub owner or organization.")
@click.option("-u", "--repo", "repo_name", help="GitHub repository.")
@pass_app
def release_command(
    app: AppContext,
    target: str | None,
    rebuild: bool,
    notes_only: bool,
    dry_run: bool,
    prerelease: bool,
    token: str | None,
    owner: str | None,
    repo_name: str | None,
) -> None:
    """Publish GitHub releases from tagged history. TARGET: major|minor|patch or a semver."""
    with reporting_errors(app.err_console):
        check_release_options(
            rebuild=rebuild,
            target=target,
            prerelease=prerelease,
            notes_only=notes_only,
            dry_run=dry_run,
        )
        config = app.load_config(github={"token": token, "owner": owner, "repo": repo_name})
        run_release(
            GitRepository(app.cwd),
            config,
            app.cwd,
            target=target,
            rebuild=rebuild,
            notes_only=notes_only,
            dry_run=dry_run,
            prerelease=prerelease,
            console=app.console,
        )


def main() -> None:
    cli(prog_name="tagflow")
