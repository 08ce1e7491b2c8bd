"""CLI entry point for gamifier.

Uses Click to expose the ``gamifier`` command group.  Commands restore a
session from the state store headlessly (no renderer, virtual time) to
inspect or reset it.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, TypeVar

import click

import gamifier
from gamifier.core.activity import Activity, StoredHost
from gamifier.core.codec import StateStore
from gamifier.core.config import ConfigError, load_config
from gamifier.core.scheduler import ManualScheduler
from gamifier.core.status import format_value
from gamifier.core.timer import to_timecode

T = TypeVar("T")

_MODE_LABELS = {
    "normal": "in progress",
    "time_expired": "time expired",
    "attempts_exceeded": "attempts exceeded",
}


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting ``ConfigError`` to a CLI error.

    On ``ConfigError`` the message is printed to stderr and the process
    exits with code 1.
    """
    try:
        return action()
    except ConfigError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


def _load_activity(config_path: Path, state_dir: Path | None) -> tuple[Activity, StateStore]:
    store = StateStore(config_dir=state_dir)
    config = load_config(config_path)
    return Activity(config, ManualScheduler(), host=StoredHost(store)), store


def _settle(activity: Activity) -> None:
    """Complete a pending transition; there is no renderer to signal it."""
    controller = activity.controller
    activity.context.scheduler.run_pending()
    if controller.is_transitioning:
        controller.pages[controller.current_index].end_transition()


config_argument = click.argument(
    "config_path", metavar="CONFIG", type=click.Path(dir_okay=False, path_type=Path)
)
state_dir_option = click.option(
    "--state-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding state.json (default: ~/.config/gamifier).",
)


@click.group()
@click.version_option(version=gamifier.__version__, prog_name="gamifier")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
def cli(verbose: bool) -> None:
    """gamifier: multi-page learning activity sessions."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@config_argument
@state_dir_option
def status(config_path: Path, state_dir: Path | None) -> None:
    """Show the stored session progress for CONFIG."""
    activity, _ = _run(lambda: _load_activity(config_path, state_dir))
    controller = activity.controller
    pages = controller.pages

    index = activity.context.previous_state.page_index
    if index is None:
        click.echo("Not started")
    else:
        click.echo(f"Page {index + 1} of {len(pages)}")
    click.echo(f"Time left: {to_timecode(controller.time_left_ms)}")
    click.echo(f"Score: {format_value(activity.get_score())}/{format_value(activity.get_max_score())}")

    for page in pages:
        click.echo(
            f"  {page.index + 1}. {page.title}: "
            f"attempts {format_value(page.get_attempts_left())}, "
            f"time {page.get_time_left_timecode()}, "
            f"{_MODE_LABELS[page.display_mode.value]}"
        )


@cli.command()
@config_argument
@state_dir_option
def reset(config_path: Path, state_dir: Path | None) -> None:
    """Reset the stored session for CONFIG to its configured budgets."""
    activity, store = _run(lambda: _load_activity(config_path, state_dir))
    activity.reset_task()
    _settle(activity)
    activity.save(store)
    click.echo(f"Session reset: {len(activity.controller.pages)} pages")


@cli.command()
@state_dir_option
def clear(state_dir: Path | None) -> None:
    """Delete the stored session."""
    store = StateStore(config_dir=state_dir)
    if store.clear():
        click.echo(f"Removed {store.path}")
    else:
        click.echo("No stored session")
        sys.exit(1)
