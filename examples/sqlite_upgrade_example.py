#!/usr/bin/env python3
"""
SQLite Upgrade Example

One file that walks a SQLite database through two upgrade runs and a
rollback, printing the journal after each step.
"""

import shutil
import sys
from pathlib import Path

# Add src to path so we can import tally
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tally import (  # noqa: E402
    ConnectionManager,
    FileSystemScriptProvider,
    SqliteConnection,
    TableJournal,
    Upgrader,
)

WORK_DIR = Path("data/tally_example")


def write_script(name: str, sql: str) -> None:
    scripts_dir = WORK_DIR / "scripts"
    scripts_dir.mkdir(parents=True, exist_ok=True)
    (scripts_dir / name).write_text(sql)


def show(journal: TableJournal, title: str) -> None:
    print(f"\n{title}")
    print("=" * 50)
    print(journal.get_history())
    print(f"Current batch: {journal.get_current_batch_number()}")


def main():
    if WORK_DIR.exists():
        shutil.rmtree(WORK_DIR)

    manager = ConnectionManager(SqliteConnection(database=str(WORK_DIR / "app.db")))
    journal = TableJournal(manager, "sqlite")
    provider = FileSystemScriptProvider(WORK_DIR / "scripts")
    upgrader = Upgrader(manager, journal, provider)

    # First run: two scripts, one batch
    write_script("001_users.sql", "create table users (id integer, name text);")
    write_script("002_seed.sql", "insert into users values (1, 'ada');")
    result = upgrader.perform_upgrade()
    print(f"Applied {len(result.scripts)} scripts in batch {result.batch_number}")
    show(journal, "After first run")

    # Second run picks up only the new script
    write_script("003_emails.sql", "alter table users add column email text;")
    result = upgrader.perform_upgrade()
    print(f"Applied {len(result.scripts)} scripts in batch {result.batch_number}")
    show(journal, "After second run")

    # Mark the latest batch rolled back; its scripts become pending again
    rolled_back = upgrader.rollback_batch()
    print(f"Rolled back: {rolled_back}")
    show(journal, "After rollback")
    print(f"Pending: {[s.name for s in upgrader.get_scripts_to_execute()]}")


if __name__ == "__main__":
    main()
