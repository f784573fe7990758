"""Hierarchy storage layer: atomic insert, tree read-back and full reset."""
from __future__ import annotations

import logging
import sqlite3

from src.shared.db.connection import ConnectionPool
from src.shared.errors import PersistenceError
from src.shared.models.hierarchy import (
    Hierarchy,
    PersistedHierarchy,
    ProcessNode,
    SubprocessNode,
    UseCaseNode,
)

logger = logging.getLogger(__name__)

_INSERT_PROCESS = "INSERT INTO processes (name, description) VALUES (?, ?)"
_INSERT_SUBPROCESS = (
    "INSERT INTO subprocesses (process_id, name, description) VALUES (?, ?, ?)"
)
_INSERT_USE_CASE = """INSERT INTO use_cases
    (subprocess_id, name, description, primary_actor, kind,
     preconditions, postconditions, acceptance_criteria)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?)"""


class HierarchyStore:
    """Persists and retrieves the process hierarchy.

    Uses three tables linked by foreign keys:
    - processes (id, name, description)
    - subprocesses (id, process_id -> processes.id, name, description)
    - use_cases (id, subprocess_id -> subprocesses.id, name, description,
      primary_actor, kind, preconditions, postconditions, acceptance_criteria)
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def persist(self, hierarchy: Hierarchy) -> PersistedHierarchy:
        """Insert a whole hierarchy in one transaction.

        Parents are inserted before their children so every foreign key
        refers to an identifier generated earlier in the same transaction.

        Args:
            hierarchy: A normalized hierarchy.

        Returns:
            The same tree annotated with generated identifiers.

        Raises:
            PersistenceError: If any insert fails. Nothing is committed.
        """
        processes: list[ProcessNode] = []
        use_case_count = 0
        try:
            with self._pool.transaction() as conn:
                for process in hierarchy.processes:
                    cursor = conn.execute(
                        _INSERT_PROCESS, (process.name, process.description)
                    )
                    process_node = ProcessNode(
                        id=cursor.lastrowid,
                        name=process.name,
                        description=process.description,
                    )
                    for subprocess in process.subprocesses:
                        cursor = conn.execute(
                            _INSERT_SUBPROCESS,
                            (process_node.id, subprocess.name, subprocess.description),
                        )
                        subprocess_node = SubprocessNode(
                            id=cursor.lastrowid,
                            process_id=process_node.id,
                            name=subprocess.name,
                            description=subprocess.description,
                        )
                        for use_case in subprocess.use_cases:
                            cursor = conn.execute(
                                _INSERT_USE_CASE,
                                (
                                    subprocess_node.id,
                                    use_case.name,
                                    use_case.description,
                                    use_case.primary_actor,
                                    int(use_case.kind),
                                    use_case.preconditions,
                                    use_case.postconditions,
                                    use_case.acceptance_criteria,
                                ),
                            )
                            subprocess_node.use_cases.append(
                                UseCaseNode(
                                    id=cursor.lastrowid,
                                    subprocess_id=subprocess_node.id,
                                    **use_case.model_dump(),
                                )
                            )
                            use_case_count += 1
                        process_node.subprocesses.append(subprocess_node)
                    processes.append(process_node)
        except sqlite3.Error as exc:
            logger.error("Hierarchy insert rolled back: %s", exc)
            raise PersistenceError(f"Failed to persist hierarchy: {exc}") from exc

        subprocess_count = sum(len(p.subprocesses) for p in processes)
        logger.info(
            "Persisted hierarchy: processes=%d subprocesses=%d use_cases=%d",
            len(processes), subprocess_count, use_case_count,
            extra={"context": {
                "processes": len(processes),
                "subprocesses": subprocess_count,
                "use_cases": use_case_count,
            }},
        )
        return PersistedHierarchy(processes=processes)

    def read_all(self) -> list[ProcessNode]:
        """Rebuild the full tree from three table scans.

        Children keep identifier order. Rows whose parent is missing are
        dropped.
        """
        with self._pool.snapshot() as conn:
            process_rows = conn.execute("SELECT * FROM processes ORDER BY id").fetchall()
            subprocess_rows = conn.execute("SELECT * FROM subprocesses ORDER BY id").fetchall()
            use_case_rows = conn.execute("SELECT * FROM use_cases ORDER BY id").fetchall()

        subprocesses: dict[int, SubprocessNode] = {
            row["id"]: SubprocessNode(**dict(row)) for row in subprocess_rows
        }
        orphans = 0
        for row in use_case_rows:
            parent = subprocesses.get(row["subprocess_id"])
            if parent is None:
                orphans += 1
                continue
            parent.use_cases.append(UseCaseNode(**dict(row)))

        processes: dict[int, ProcessNode] = {
            row["id"]: ProcessNode(**dict(row)) for row in process_rows
        }
        for subprocess in subprocesses.values():
            parent = processes.get(subprocess.process_id)
            if parent is None:
                orphans += 1
                continue
            parent.subprocesses.append(subprocess)

        if orphans:
            logger.warning("Dropped %d orphan rows while building the tree", orphans)
        return list(processes.values())

    def reset_all(self) -> None:
        """Delete every row, children first, then reclaim space."""
        try:
            with self._pool.transaction() as conn:
                conn.execute("DELETE FROM use_cases")
                conn.execute("DELETE FROM subprocesses")
                conn.execute("DELETE FROM processes")
            self._pool.vacuum()
        except sqlite3.Error as exc:
            logger.error("Reset failed: %s", exc)
            raise PersistenceError(f"Failed to reset hierarchy: {exc}") from exc
        logger.info("Hierarchy store reset")
