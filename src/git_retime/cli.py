"""Command line interface for git-retime."""

import datetime
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .adapter import CommitRange, GitRetimeAdapter
from .config import get_config
from .errors import RetimeError, RetimeInputError
from .planner import RetimePlan, plan_from_todo, plan_randomize, plan_shift
from .timestamp import format_local
from .todo import generate

logger = logging.getLogger(__name__)

console = Console(stderr=True)


def render_plan(plan: RetimePlan) -> Table:
    """Table of old and new dates for each commit."""
    table = Table(title="Retime plan")
    table.add_column("Commit", style="cyan", no_wrap=True)
    table.add_column("Author date (old)")
    table.add_column("Author date (new)", style="green")
    table.add_column("Committer date (new)", style="green")
    table.add_column("Subject")

    for commit in plan.commits:
        table.add_row(
            commit.short_hash,
            format_local(commit.orig_author_date),
            format_local(commit.resolved_author_date),
            format_local(commit.resolved_commit_date),
            escape(commit.new_subject or commit.subject),
        )
    return table


def print_paradoxes(paradoxes: list[str]) -> None:
    console.print("⚠️  warning: time paradox detected", style="yellow")
    for warning in paradoxes:
        console.print(f"  {escape(warning)}")


def run_interactive(
    adapter: GitRetimeAdapter,
    commit_range: CommitRange,
    now: datetime.datetime,
    split_dates: bool,
    allow_paradox: bool,
) -> RetimePlan | None:
    """
    Let the user edit the todo file until it resolves cleanly.

    Returns None when the user aborts.
    """
    config = get_config()
    editor = config.retime.editor or adapter.get_editor()
    todo_path = adapter.git_dir() / config.retime.todo_filename
    content = generate(commit_range.commits, commit_range.base, split_dates)

    try:
        while True:
            todo_path.write_text(content, encoding="utf-8")
            adapter.open_editor(editor, todo_path)
            content = todo_path.read_text(encoding="utf-8")

            try:
                plan = plan_from_todo(content, commit_range.commits, now, split_dates)
            except RetimeInputError as e:
                console.print(f"❌ {escape(str(e))}", style="red")
                if click.confirm("Edit the todo file again?", default=True, err=True):
                    continue
                return None

            if plan is None:
                return None

            if plan.paradoxes and not allow_paradox:
                print_paradoxes(plan.paradoxes)
                if not click.confirm("Proceed anyway?", default=False, err=True):
                    continue

            return plan
    finally:
        todo_path.unlink(missing_ok=True)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("revision")
@click.option("--shift", "shift_expr", metavar="EXPR", help="Shift all commits by an offset (e.g. +2h, -1d30m)")
@click.option(
    "--randomize", "range_expr", metavar="HH:MM-HH:MM",
    help="Randomize the time of day within a range (e.g. 09:00-17:00)",
)
@click.option(
    "--randomize-allow-paradox", is_flag=True,
    help="Allow non-monotonic times when randomizing (default: sorted within each day)",
)
@click.option(
    "--split-dates/--no-split-dates", default=None,
    help="Edit author and committer dates independently",
)
@click.option("-i", "--interactive", is_flag=True, help="Interactive mode (default, accepted for compatibility)")
@click.option("--dry-run", is_flag=True, help="Print the rebase script instead of running it")
@click.option("--backup", is_flag=True, help="Create a backup branch before rewriting")
@click.option(
    "-C", "repo_path", default=".", type=click.Path(exists=True, file_okay=False),
    help="Run as if started in this directory",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="git-retime")
def cli(
    revision: str,
    shift_expr: str | None,
    range_expr: str | None,
    randomize_allow_paradox: bool,
    split_dates: bool | None,
    interactive: bool,
    dry_run: bool,
    backup: bool,
    repo_path: str,
    verbose: bool,
):
    """Interactively edit commit timestamps after REVISION.

    \b
    Examples:
      git retime HEAD~5              Open editor for the last 5 commits
      git retime abc1234             Retime from abc1234 to HEAD
      git retime HEAD~3 --shift +2h  Shift last 3 commits by 2 hours
      git retime HEAD~5 --randomize 09:00-17:00
    """
    config = get_config()
    level = logging.DEBUG if verbose else getattr(logging, config.server.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level)

    if shift_expr and range_expr:
        raise click.UsageError("--shift and --randomize cannot be combined")

    if split_dates is None:
        split_dates = config.retime.split_dates

    try:
        adapter = GitRetimeAdapter(repo_path)
        commit_range = adapter.fetch_commits(revision)
        if not commit_range.commits:
            console.print("❌ no commits in the specified range", style="red")
            sys.exit(1)

        now = datetime.datetime.now().astimezone().replace(microsecond=0)

        if shift_expr:
            plan = plan_shift(commit_range.commits, shift_expr)
        elif range_expr:
            plan = plan_randomize(commit_range.commits, range_expr, randomize_allow_paradox)
        else:
            allow_paradox = config.retime.allow_paradox
            plan = run_interactive(adapter, commit_range, now, split_dates, allow_paradox)
            if plan is None:
                console.print("retime aborted")
                return

        if dry_run:
            console.print(render_plan(plan))
            if plan.paradoxes:
                print_paradoxes(plan.paradoxes)
            click.echo(plan.script, nl=False)
            return

        if adapter.has_merge_commits(commit_range.base):
            logger.warning("range contains merge commits; they will be rebased as regular picks")

        if backup:
            console.print(f"Created backup branch {adapter.create_backup()}", style="blue")

        result = adapter.execute_rebase(plan.script, commit_range.base, commit_range.needs_root)
    except (RetimeError, ValueError, RuntimeError) as e:
        console.print(f"❌ fatal: {escape(str(e))}", style="red")
        sys.exit(1)

    if not result.success:
        console.print(f"❌ {escape(result.message)}", style="red")
        if result.error:
            console.print(escape(result.error))
        sys.exit(1)

    console.print(f"✅ {escape(result.message)}", style="green")


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
