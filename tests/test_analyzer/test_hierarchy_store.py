"""Tests for the hierarchy store: atomic insert, tree read-back and reset."""
from __future__ import annotations

import json
import logging
import sqlite3

import pytest

from src.analyzer.services.normalizer import normalize_hierarchy
from src.analyzer.storage.hierarchy_store import HierarchyStore
from src.shared.db.connection import ConnectionPool
from src.shared.errors import PersistenceError
from src.shared.logging import JSONFormatter
from src.shared.models.hierarchy import Hierarchy, PersistedHierarchy, UseCaseKind


def _counts(pool: ConnectionPool) -> tuple[int, int, int]:
    conn = pool.get()
    return tuple(
        conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        for table in ("processes", "subprocesses", "use_cases")
    )


def _strip_ids(processes) -> list[dict]:
    """Drop identifiers and foreign keys so trees compare by content."""
    stripped = []
    for process in processes:
        data = process.model_dump(exclude={"id"})
        for subprocess in data["subprocesses"]:
            subprocess.pop("id")
            subprocess.pop("process_id")
            for use_case in subprocess["use_cases"]:
                use_case.pop("id")
                use_case.pop("subprocess_id")
        stripped.append(data)
    return stripped


class TestPersist:
    def test_returns_identifier_annotated_tree(self, store, sample_hierarchy):
        persisted = store.persist(sample_hierarchy)
        assert isinstance(persisted, PersistedHierarchy)
        assert [p.name for p in persisted.processes] == ["Order management", "Operations"]
        for process in persisted.processes:
            assert isinstance(process.id, int)
            for subprocess in process.subprocesses:
                assert subprocess.process_id == process.id
                for use_case in subprocess.use_cases:
                    assert use_case.subprocess_id == subprocess.id

    def test_output_mirrors_input(self, store, sample_hierarchy):
        persisted = store.persist(sample_hierarchy)
        assert _strip_ids(persisted.processes) == sample_hierarchy.model_dump()["processes"]

    def test_row_counts(self, store, connection_pool, sample_hierarchy):
        store.persist(sample_hierarchy)
        assert _counts(connection_pool) == (2, 3, 7)

    def test_identifiers_are_unique_across_calls(self, store, sample_hierarchy):
        first = store.persist(sample_hierarchy)
        second = store.persist(sample_hierarchy)
        first_ids = {p.id for p in first.processes}
        second_ids = {p.id for p in second.processes}
        assert first_ids.isdisjoint(second_ids)

    def test_empty_hierarchy(self, store, connection_pool):
        persisted = store.persist(Hierarchy())
        assert persisted.processes == []
        assert _counts(connection_pool) == (0, 0, 0)

    def test_kind_stored_as_integer(self, store, connection_pool, sample_hierarchy):
        store.persist(sample_hierarchy)
        kinds = {
            row[0]
            for row in connection_pool.get().execute("SELECT kind FROM use_cases")
        }
        assert kinds == {1, 2, 3}

    def test_logs_row_counts_as_context(self, store, sample_hierarchy, caplog):
        with caplog.at_level(logging.INFO, logger="src.analyzer.storage.hierarchy_store"):
            store.persist(sample_hierarchy)
        record = next(r for r in caplog.records if r.msg.startswith("Persisted hierarchy"))
        assert record.context == {"processes": 2, "subprocesses": 3, "use_cases": 7}
        entry = json.loads(JSONFormatter().format(record))
        assert entry["use_cases"] == 7


class TestAtomicity:
    @pytest.fixture
    def failing_store(self, connection_pool: ConnectionPool) -> HierarchyStore:
        """Store whose use_cases table rejects rows named 'explode'."""
        connection_pool.get().executescript("""
            CREATE TRIGGER fail_on_explode BEFORE INSERT ON use_cases
            WHEN NEW.name = 'explode'
            BEGIN
                SELECT RAISE(ABORT, 'forced failure');
            END;
        """)
        return HierarchyStore(connection_pool)

    def test_failure_on_third_use_case_of_second_subprocess(
        self, failing_store, connection_pool, sample_hierarchy
    ):
        backups = sample_hierarchy.processes[1].subprocesses[1]
        backups.use_cases[2].name = "explode"

        with pytest.raises(PersistenceError) as exc_info:
            failing_store.persist(sample_hierarchy)

        assert "forced failure" in exc_info.value.detail
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)
        assert _counts(connection_pool) == (0, 0, 0)
        assert failing_store.read_all() == []

    def test_earlier_commits_survive_later_failure(
        self, failing_store, connection_pool, sample_hierarchy
    ):
        failing_store.persist(sample_hierarchy)
        sample_hierarchy.processes[0].subprocesses[0].use_cases[0].name = "explode"

        with pytest.raises(PersistenceError):
            failing_store.persist(sample_hierarchy)

        assert _counts(connection_pool) == (2, 3, 7)

    def test_store_usable_after_rollback(self, failing_store, sample_hierarchy):
        bad = sample_hierarchy.model_copy(deep=True)
        bad.processes[1].subprocesses[0].use_cases[0].name = "explode"
        with pytest.raises(PersistenceError):
            failing_store.persist(bad)

        persisted = failing_store.persist(sample_hierarchy)
        assert len(failing_store.read_all()) == len(persisted.processes)


class TestReadAll:
    def test_empty_store(self, store):
        assert store.read_all() == []

    def test_round_trip(self, store, sample_hierarchy):
        persisted = store.persist(sample_hierarchy)
        tree = store.read_all()
        assert tree == persisted.processes
        assert _strip_ids(tree) == sample_hierarchy.model_dump()["processes"]

    def test_foreign_keys_match_parent_ids(self, store, sample_hierarchy):
        store.persist(sample_hierarchy)
        for process in store.read_all():
            for subprocess in process.subprocesses:
                assert subprocess.process_id == process.id
                for use_case in subprocess.use_cases:
                    assert use_case.subprocess_id == subprocess.id

    def test_children_in_insertion_order(self, store, sample_hierarchy):
        store.persist(sample_hierarchy)
        operations = store.read_all()[1]
        assert [s.name for s in operations.subprocesses] == ["Monitoring", "Backups"]
        assert [u.name for u in operations.subprocesses[1].use_cases] == [
            "Nightly snapshot", "Restore drill", "Verify checksums",
        ]

    def test_accumulates_across_persists(self, store, sample_hierarchy):
        store.persist(sample_hierarchy)
        store.persist(sample_hierarchy)
        assert len(store.read_all()) == 4

    def test_orphans_are_dropped(self, store, connection_pool, sample_hierarchy):
        store.persist(sample_hierarchy)
        conn = connection_pool.get()
        conn.execute("PRAGMA foreign_keys=OFF")
        conn.execute("INSERT INTO subprocesses (process_id, name) VALUES (9999, 'lost')")
        conn.execute(
            "INSERT INTO use_cases (subprocess_id, name, kind) VALUES (8888, 'lost', 1)"
        )
        conn.commit()
        conn.execute("PRAGMA foreign_keys=ON")

        tree = store.read_all()
        names = [s.name for p in tree for s in p.subprocesses]
        assert "lost" not in names
        use_case_names = [u.name for p in tree for s in p.subprocesses for u in s.use_cases]
        assert "lost" not in use_case_names
        assert len(use_case_names) == 7


class TestResetAll:
    def test_clears_everything(self, store, connection_pool, sample_hierarchy):
        store.persist(sample_hierarchy)
        store.reset_all()
        assert _counts(connection_pool) == (0, 0, 0)
        assert store.read_all() == []

    def test_idempotent(self, store, sample_hierarchy):
        store.persist(sample_hierarchy)
        store.reset_all()
        store.reset_all()
        assert store.read_all() == []

    def test_on_empty_store(self, store):
        store.reset_all()
        assert store.read_all() == []

    def test_identifiers_not_reused_after_reset(self, store, sample_hierarchy):
        first = store.persist(sample_hierarchy)
        store.reset_all()
        second = store.persist(sample_hierarchy)
        assert second.processes[0].id > first.processes[-1].id


class TestEndToEndScenario:
    def test_kind_clamped_and_ids_assigned(self, store):
        document = {
            "processes": [
                {
                    "name": "P1",
                    "subprocesses": [
                        {"name": "S1", "use_cases": [{"name": "U1", "kind": 7}]}
                    ],
                }
            ]
        }
        hierarchy = normalize_hierarchy(document)
        assert hierarchy.processes[0].subprocesses[0].use_cases[0].kind == UseCaseKind.SYSTEM

        persisted = store.persist(hierarchy)
        process = persisted.processes[0]
        assert (process.id, process.subprocesses[0].id, process.subprocesses[0].use_cases[0].id) == (1, 1, 1)

        tree = [p.model_dump(mode="json") for p in store.read_all()]
        assert tree == [
            {
                "id": 1,
                "name": "P1",
                "description": None,
                "subprocesses": [
                    {
                        "id": 1,
                        "process_id": 1,
                        "name": "S1",
                        "description": None,
                        "use_cases": [
                            {
                                "id": 1,
                                "subprocess_id": 1,
                                "name": "U1",
                                "description": None,
                                "primary_actor": None,
                                "kind": 3,
                                "preconditions": None,
                                "postconditions": None,
                                "acceptance_criteria": None,
                            }
                        ],
                    }
                ],
            }
        ]
