#!/usr/bin/env python3
"""
tally CLI - keep a tally of the upgrade scripts applied to a database.

This module provides the `tally` command-line interface for tally projects.
"""

import sys
from pathlib import Path

import click
import polars as pl
import yaml

from tally import __version__
from tally.journal import TableJournal
from tally.utility.exceptions import ConfigError, JournalNotSupportedError
from tally.workspace import DEFAULT_CONFIG_FILE, Workspace

EXAMPLE_SCRIPT = """-- Your first upgrade script.
-- Scripts run once each, in name order.
create table example (
    id integer primary key,
    name varchar(100) not null
);
"""


def _load_workspace(ctx: click.Context) -> Workspace:
    try:
        return Workspace.from_yaml(ctx.obj["config"])
    except ConfigError as e:
        click.echo(f"Configuration error: {e}")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Path to the tally configuration file",
)
@click.pass_context
def tally(ctx: click.Context, config: str):
    """
    tally - keep a tally of applied upgrade scripts

    Runs each upgrade script once, in order, and remembers what ran.
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@tally.command()
@click.option(
    "--scripts-dir",
    "-d",
    default="scripts",
    help="Name of the scripts directory (default: scripts)",
)
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite an existing configuration file",
)
@click.pass_context
def init(ctx: click.Context, scripts_dir: str, force: bool):
    """Create a tally.yml and a scripts directory using a local SQLite database."""
    config_path = Path(ctx.obj["config"])

    if config_path.exists() and not force:
        click.echo(f"{config_path} already exists")
        click.echo("Use --force to overwrite it")
        sys.exit(1)

    config = {
        "connection": {"type": "sqlite", "database": "tally.db"},
        "journal": {"table_name": "SchemaVersions"},
        "scripts": {"path": scripts_dir},
    }
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.safe_dump(config, f, sort_keys=False)
    click.echo(f"Created {config_path}")

    scripts_path = config_path.parent / scripts_dir
    scripts_path.mkdir(exist_ok=True)
    example = scripts_path / "001_example.sql"
    if not example.exists():
        example.write_text(EXAMPLE_SCRIPT)
        click.echo(f"Created example script: {example}")

    click.echo("tally project initialized successfully")


@tally.command()
@click.pass_context
def executed(ctx: click.Context):
    """List the scripts recorded as executed."""
    workspace = _load_workspace(ctx)
    try:
        scripts = workspace.journal.get_executed_scripts()
    except Exception as e:
        click.echo(f"Error: {e}")
        sys.exit(1)

    if not scripts:
        click.echo("No scripts have been executed")
        return
    for name in scripts:
        click.echo(name)


@tally.command()
@click.pass_context
def pending(ctx: click.Context):
    """List the scripts that would run on the next upgrade."""
    workspace = _load_workspace(ctx)
    try:
        scripts = workspace.upgrader().get_scripts_to_execute()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}")
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {e}")
        sys.exit(1)

    if not scripts:
        click.echo("Database is up to date")
        return
    for script in scripts:
        click.echo(script.name)


@tally.command()
@click.pass_context
def batch(ctx: click.Context):
    """Show the current batch number."""
    workspace = _load_workspace(ctx)
    try:
        click.echo(str(workspace.journal.get_current_batch_number()))
    except JournalNotSupportedError:
        click.echo("The configured journal does not record batches")
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {e}")
        sys.exit(1)


@tally.command()
@click.pass_context
def history(ctx: click.Context):
    """Show every journal entry."""
    workspace = _load_workspace(ctx)
    if not isinstance(workspace.journal, TableJournal):
        click.echo("The configured journal does not keep history")
        sys.exit(1)

    try:
        frame = workspace.journal.get_history()
    except Exception as e:
        click.echo(f"Error: {e}")
        sys.exit(1)

    if frame.is_empty():
        click.echo("The journal is empty")
        return
    with pl.Config(tbl_rows=-1, fmt_str_lengths=100):
        click.echo(str(frame))


@tally.command()
@click.option(
    "--no-transaction",
    is_flag=True,
    help="Do not wrap each script and its journal entry in a transaction",
)
@click.pass_context
def upgrade(ctx: click.Context, no_transaction: bool):
    """Execute pending scripts and record them."""
    workspace = _load_workspace(ctx)
    upgrader = workspace.upgrader(transaction_per_script=not no_transaction)
    result = upgrader.perform_upgrade()

    if not result.successful:
        if result.error_script:
            click.echo(f"Upgrade failed on {result.error_script}: {result.error}")
        else:
            click.echo(f"Upgrade failed: {result.error}")
        sys.exit(1)

    if not result.scripts:
        click.echo("Database is up to date")
        return
    message = f"Applied {len(result.scripts)} scripts"
    if result.batch_number is not None:
        message += f" in batch {result.batch_number}"
    click.echo(message)


@tally.command()
@click.option(
    "--batch",
    "batch_number",
    type=int,
    default=None,
    help="Batch to roll back (default: the current batch)",
)
@click.pass_context
def rollback(ctx: click.Context, batch_number: int):
    """Mark the scripts of a batch as rolled back."""
    workspace = _load_workspace(ctx)
    try:
        scripts = workspace.upgrader().rollback_batch(batch_number)
    except JournalNotSupportedError:
        click.echo("The configured journal cannot roll back")
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {e}")
        sys.exit(1)

    if not scripts:
        click.echo("Nothing to roll back")
        return
    for name in scripts:
        click.echo(f"Rolled back {name}")


if __name__ == "__main__":
    tally()
