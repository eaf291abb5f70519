"""
End-to-end journal and upgrade behavior against a real SQLite database.

These tests walk through what a caller sees over the life of a database:
first run, later runs, rollbacks, and a journal table written by an older
version that has no batch numbers yet.
"""
import sqlite3

import pytest

from tally.connections.manager import ConnectionManager
from tally.connections.sqlite import SqliteConnection
from tally.engine.scripts import FileSystemScriptProvider
from tally.engine.upgrader import Upgrader
from tally.journal.null_journal import NullJournal
from tally.journal.table_journal import TableJournal

pytestmark = pytest.mark.integration

LEGACY_TABLE = """
create table "SchemaVersions" (
    "Id" integer primary key autoincrement,
    "ScriptName" varchar(255) not null,
    "Applied" timestamp not null
)
"""


@pytest.fixture
def legacy_database(sqlite_path):
    """A database whose journal predates batch numbers, with two entries."""
    with sqlite3.connect(str(sqlite_path)) as conn:
        conn.execute(LEGACY_TABLE)
        conn.execute(
            'insert into "SchemaVersions" ("ScriptName", "Applied") '
            "values ('001_legacy.sql', '2020-01-01 00:00:00')"
        )
        conn.execute(
            'insert into "SchemaVersions" ("ScriptName", "Applied") '
            "values ('002_legacy.sql', '2020-01-02 00:00:00')"
        )
    return sqlite_path


@pytest.fixture
def scripts_dir(temp_dir):
    path = temp_dir / "scripts"
    path.mkdir()
    return path


def write_script(scripts_dir, name, sql):
    (scripts_dir / name).write_text(sql)


class TestFreshDatabase:
    """A database that has never been upgraded."""

    def test_reads_report_initial_state(self, sqlite_journal):
        assert sqlite_journal.get_executed_scripts() == []
        assert sqlite_journal.get_executed_scripts_on_batch_number(1) == []
        assert sqlite_journal.get_current_batch_number() == 0

    def test_reads_never_create_the_table(self, sqlite_journal, read_tables):
        sqlite_journal.get_executed_scripts()
        sqlite_journal.get_executed_scripts_on_batch_number(1)
        sqlite_journal.get_current_batch_number()
        sqlite_journal.get_history()

        assert read_tables() == []

    def test_missing_table_is_logged(self, sqlite_journal, recording_logger):
        sqlite_journal.get_executed_scripts()

        assert recording_logger.infos == [
            "Fetching list of already executed scripts.",
            'The "SchemaVersions" table could not be found. '
            "The database is assumed to be at version 0.",
        ]

    def test_first_store_creates_table_in_batch_one(
        self, sqlite_journal, script, read_tables, recording_logger
    ):
        sqlite_journal.store_executed_script(script("001_init.sql"))

        assert read_tables() == ["SchemaVersions"]
        assert sqlite_journal.get_executed_scripts() == ["001_init.sql"]
        assert sqlite_journal.get_current_batch_number() == 1
        assert sqlite_journal.get_executed_scripts_on_batch_number(1) == [
            "001_init.sql"
        ]
        assert 'Creating the "SchemaVersions" table' in recording_logger.infos
        assert 'The "SchemaVersions" table has been created' in recording_logger.infos

    def test_update_without_table_affects_nothing(self, sqlite_journal, read_tables):
        assert sqlite_journal.update_script_entry("001_init.sql") == 0
        assert read_tables() == []


class TestBatches:
    """Every plain store opens the next batch."""

    def test_each_store_opens_a_new_batch(self, sqlite_journal, script):
        for name in ["001.sql", "002.sql", "003.sql"]:
            sqlite_journal.store_executed_script(script(name))

        assert sqlite_journal.get_current_batch_number() == 3
        assert sqlite_journal.get_executed_scripts_on_batch_number(2) == ["002.sql"]

    def test_explicit_batch_groups_scripts(self, sqlite_journal, script):
        sqlite_journal.store_executed_script(script("001.sql"))
        sqlite_journal.store_executed_script(script("003.sql"), batch_number=2)
        sqlite_journal.store_executed_script(script("002.sql"), batch_number=2)

        assert sqlite_journal.get_current_batch_number() == 2
        assert sqlite_journal.get_executed_scripts_on_batch_number(2) == [
            "002.sql",
            "003.sql",
        ]

    def test_unknown_batch_is_empty(self, sqlite_journal, script):
        sqlite_journal.store_executed_script(script("001.sql"))

        assert sqlite_journal.get_executed_scripts_on_batch_number(7) == []

    def test_batch_below_one_is_rejected(self, sqlite_journal, script, read_tables):
        with pytest.raises(ValueError):
            sqlite_journal.store_executed_script(script("001.sql"), batch_number=0)

        assert read_tables() == []

    def test_executed_scripts_are_sorted_by_name(self, sqlite_journal, script):
        for name in ["020_b.sql", "003_a.sql", "100_c.sql"]:
            sqlite_journal.store_executed_script(script(name))

        assert sqlite_journal.get_executed_scripts() == [
            "003_a.sql",
            "020_b.sql",
            "100_c.sql",
        ]

    def test_storing_twice_records_two_entries(self, sqlite_journal, script):
        sqlite_journal.store_executed_script(script("001.sql"))
        sqlite_journal.store_executed_script(script("001.sql"))

        assert sqlite_journal.get_executed_scripts() == ["001.sql", "001.sql"]
        assert sqlite_journal.get_current_batch_number() == 2


class TestRollbackMarking:
    """Rolled back entries keep their row under a prefixed name."""

    def test_rolled_back_entry_is_renamed(self, sqlite_journal, script):
        sqlite_journal.store_executed_script(script("001.sql"))
        sqlite_journal.store_executed_script(script("002.sql"))

        assert sqlite_journal.update_script_entry("002.sql") == 1
        assert sqlite_journal.get_executed_scripts() == [
            "001.sql",
            "rolledback_002.sql",
        ]
        assert sqlite_journal.get_executed_scripts_on_batch_number(2) == [
            "rolledback_002.sql"
        ]

    def test_unknown_name_affects_nothing(self, sqlite_journal, script):
        sqlite_journal.store_executed_script(script("001.sql"))

        assert sqlite_journal.update_script_entry("999.sql") == 0
        assert sqlite_journal.get_executed_scripts() == ["001.sql"]

    def test_rolling_back_twice_adds_the_prefix_again(self, sqlite_journal, script):
        sqlite_journal.store_executed_script(script("001.sql"))
        sqlite_journal.update_script_entry("001.sql")

        sqlite_journal.update_script_entry("rolledback_001.sql")

        assert sqlite_journal.get_executed_scripts() == [
            "rolledback_rolledback_001.sql"
        ]


class TestLegacyJournal:
    """A journal table written before batch numbers existed."""

    def test_reads_work_before_evolution(self, legacy_database, sqlite_journal):
        assert sqlite_journal.get_executed_scripts() == [
            "001_legacy.sql",
            "002_legacy.sql",
        ]
        assert sqlite_journal.get_current_batch_number() == 0
        assert sqlite_journal.get_executed_scripts_on_batch_number(0) == [
            "001_legacy.sql",
            "002_legacy.sql",
        ]
        assert sqlite_journal.get_executed_scripts_on_batch_number(1) == []

    def test_store_adds_batch_column_with_default(
        self, legacy_database, sqlite_journal, script, recording_logger
    ):
        sqlite_journal.store_executed_script(script("003_new.sql"))

        assert "Adding BatchNumber column" in recording_logger.infos
        assert "Added BatchNumber column" in recording_logger.infos
        assert sqlite_journal.get_executed_scripts_on_batch_number(0) == [
            "001_legacy.sql",
            "002_legacy.sql",
        ]
        assert sqlite_journal.get_executed_scripts_on_batch_number(1) == [
            "003_new.sql"
        ]
        assert sqlite_journal.get_current_batch_number() == 1

    def test_evolution_runs_once(
        self, legacy_database, sqlite_journal, script, recording_logger
    ):
        sqlite_journal.store_executed_script(script("003.sql"))
        sqlite_journal.store_executed_script(script("004.sql"))

        assert recording_logger.infos.count("Adding BatchNumber column") == 1

    def test_history_reports_legacy_rows_as_batch_zero(
        self, legacy_database, sqlite_journal
    ):
        history = sqlite_journal.get_history()

        assert history["script_name"].to_list() == ["001_legacy.sql", "002_legacy.sql"]
        assert history["batch_number"].to_list() == [0, 0]


class TestJournalLocation:
    def test_custom_table_name(self, sqlite_manager, script, read_tables):
        journal = TableJournal(sqlite_manager, "sqlite", table_name="Migrations")

        journal.store_executed_script(script("001.sql"))

        assert read_tables() == ["Migrations"]
        assert journal.get_executed_scripts() == ["001.sql"]

    def test_main_schema(self, sqlite_manager, script, read_tables):
        journal = TableJournal(sqlite_manager, "sqlite", schema_name="main")

        assert journal.get_executed_scripts() == []
        journal.store_executed_script(script("001.sql"))

        assert read_tables() == ["SchemaVersions"]
        assert journal.get_executed_scripts() == ["001.sql"]
        assert journal.get_current_batch_number() == 1


class TestHistory:
    def test_history_lists_every_entry(self, sqlite_journal, script):
        sqlite_journal.store_executed_script(script("001.sql"))
        sqlite_journal.store_executed_script(script("002.sql"), batch_number=1)
        sqlite_journal.store_executed_script(script("003.sql"))

        history = sqlite_journal.get_history()

        assert history.columns == ["id", "script_name", "applied", "batch_number"]
        assert history["script_name"].to_list() == ["001.sql", "002.sql", "003.sql"]
        assert history["batch_number"].to_list() == [1, 1, 2]
        assert history["applied"].null_count() == 0

    def test_history_of_missing_table_is_empty(self, sqlite_journal):
        history = sqlite_journal.get_history()

        assert history.is_empty()
        assert history.columns == ["id", "script_name", "applied", "batch_number"]


class TestUpgradeRuns:
    """Discover, apply, record; the loop the journal exists for."""

    @pytest.fixture
    def upgrader(self, sqlite_manager, sqlite_journal, scripts_dir, recording_logger):
        return Upgrader(
            sqlite_manager,
            sqlite_journal,
            FileSystemScriptProvider(scripts_dir),
            logger=recording_logger,
        )

    def test_first_run_applies_everything_in_batch_one(
        self, upgrader, scripts_dir, sqlite_journal, read_tables
    ):
        write_script(scripts_dir, "001_users.sql", "create table users (id integer);")
        write_script(scripts_dir, "002_seed.sql", "insert into users values (1);")

        result = upgrader.perform_upgrade()

        assert result.successful
        assert [s.name for s in result.scripts] == ["001_users.sql", "002_seed.sql"]
        assert result.batch_number == 1
        assert sqlite_journal.get_executed_scripts_on_batch_number(1) == [
            "001_users.sql",
            "002_seed.sql",
        ]
        assert read_tables() == ["SchemaVersions", "users"]

    def test_later_runs_only_apply_new_scripts(
        self, upgrader, scripts_dir, sqlite_journal
    ):
        write_script(scripts_dir, "001_users.sql", "create table users (id integer);")
        upgrader.perform_upgrade()

        assert not upgrader.is_upgrade_required()
        assert upgrader.perform_upgrade().scripts == []

        write_script(scripts_dir, "002_seed.sql", "insert into users values (1);")
        result = upgrader.perform_upgrade()

        assert [s.name for s in result.scripts] == ["002_seed.sql"]
        assert result.batch_number == 2
        assert sqlite_journal.get_current_batch_number() == 2

    def test_failed_script_is_not_recorded(self, upgrader, scripts_dir, sqlite_journal):
        write_script(scripts_dir, "001_users.sql", "create table users (id integer);")
        write_script(scripts_dir, "002_broken.sql", "this is not sql;")
        write_script(scripts_dir, "003_never.sql", "create table never (id integer);")

        result = upgrader.perform_upgrade()

        assert not result.successful
        assert result.error_script == "002_broken.sql"
        assert [s.name for s in result.scripts] == ["001_users.sql"]
        assert sqlite_journal.get_executed_scripts() == ["001_users.sql"]
        assert [s.name for s in upgrader.get_scripts_to_execute()] == [
            "002_broken.sql",
            "003_never.sql",
        ]

    def test_failing_statement_undoes_whole_script(
        self, upgrader, scripts_dir, sqlite_journal, read_tables
    ):
        write_script(
            scripts_dir,
            "001_half.sql",
            "create table half (id integer);\n"
            "insert into half values (1);\n"
            "bogus sql;\n",
        )

        result = upgrader.perform_upgrade()

        assert not result.successful
        assert result.error_script == "001_half.sql"
        assert "half" not in read_tables()
        assert sqlite_journal.get_executed_scripts() == []

    def test_failed_journal_write_undoes_script(
        self, upgrader, scripts_dir, sqlite_journal, read_tables, monkeypatch
    ):
        def refuse(script, batch_number=None):
            raise sqlite3.OperationalError("disk I/O error")

        write_script(scripts_dir, "001_t.sql", "create table t (id integer);")
        monkeypatch.setattr(sqlite_journal, "store_executed_script", refuse)

        result = upgrader.perform_upgrade()

        assert not result.successful
        assert result.error_script == "001_t.sql"
        assert "t" not in read_tables()

    def test_rollback_makes_latest_batch_pending_again(
        self, upgrader, scripts_dir, sqlite_journal
    ):
        write_script(scripts_dir, "001_users.sql", "create table users (id integer);")
        upgrader.perform_upgrade()
        write_script(scripts_dir, "002_seed.sql", "insert into users values (1);")
        write_script(scripts_dir, "003_more.sql", "insert into users values (2);")
        upgrader.perform_upgrade()

        rolled_back = upgrader.rollback_batch()

        assert rolled_back == ["002_seed.sql", "003_more.sql"]
        assert sqlite_journal.get_executed_scripts() == [
            "001_users.sql",
            "rolledback_002_seed.sql",
            "rolledback_003_more.sql",
        ]
        assert [s.name for s in upgrader.get_scripts_to_execute()] == [
            "002_seed.sql",
            "003_more.sql",
        ]

    def test_rolling_back_a_batch_twice_changes_nothing(
        self, upgrader, scripts_dir, sqlite_journal
    ):
        write_script(scripts_dir, "001_users.sql", "create table users (id integer);")
        upgrader.perform_upgrade()

        assert upgrader.rollback_batch(1) == ["001_users.sql"]
        assert upgrader.rollback_batch(1) == []
        assert sqlite_journal.get_executed_scripts() == ["rolledback_001_users.sql"]

    def test_rollback_on_fresh_database(self, upgrader, read_tables):
        assert upgrader.rollback_batch() == []
        assert read_tables() == []


class TestNullJournalRuns:
    def test_scripts_run_every_time(self, sqlite_manager, scripts_dir, read_tables):
        write_script(
            scripts_dir,
            "001_users.sql",
            "create table if not exists users (id integer);"
            "insert into users values (1);",
        )
        upgrader = Upgrader(
            sqlite_manager, NullJournal(), FileSystemScriptProvider(scripts_dir)
        )

        first = upgrader.perform_upgrade()
        second = upgrader.perform_upgrade()

        assert first.successful and second.successful
        assert first.batch_number is None
        assert [s.name for s in second.scripts] == ["001_users.sql"]
        assert read_tables() == ["users"]


class TestSeparateConnections:
    def test_second_process_sees_recorded_scripts(self, sqlite_path, script):
        writer = TableJournal(
            ConnectionManager(SqliteConnection(database=str(sqlite_path))), "sqlite"
        )
        reader = TableJournal(
            ConnectionManager(SqliteConnection(database=str(sqlite_path))), "sqlite"
        )

        writer.store_executed_script(script("001.sql"))

        assert reader.get_executed_scripts() == ["001.sql"]
        assert reader.get_current_batch_number() == 1
