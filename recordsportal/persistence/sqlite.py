"""SQLite implementation of the workflow state repository."""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from ..workflow import (
    DEFAULT_CATALOG,
    ConcurrencyConflictError,
    DuplicateRequestError,
    NotFoundError,
    StepCatalog,
    WorkflowState,
)
from .repository import WorkflowStateRepository

logger = logging.getLogger(__name__)


class SQLiteWorkflowStateRepository(WorkflowStateRepository):
    """Persist workflow states using SQLite."""

    def __init__(self, db_path: str | Path, catalog: StepCatalog = DEFAULT_CATALOG):
        self.db_path = str(db_path)
        self._catalog = catalog
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS workflow_states (
                request_id TEXT PRIMARY KEY,
                current_step TEXT NOT NULL,
                completed_steps TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                version INTEGER NOT NULL,
                closed INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> int:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()
        return cur.rowcount

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    def _row_to_state(self, row: sqlite3.Row) -> WorkflowState:
        return WorkflowState.build(
            request_id=row["request_id"],
            current_step=row["current_step"],
            completed_steps=json.loads(row["completed_steps"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            version=row["version"],
            closed=bool(row["closed"]),
            catalog=self._catalog,
        )

    # ------------------------------------------------------------------
    # Repository API
    async def create(self, state: WorkflowState) -> None:
        record = state.to_record()
        try:
            await asyncio.to_thread(
                self._execute,
                """
                INSERT INTO workflow_states
                    (request_id, current_step, completed_steps, updated_at, version, closed)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                record["request_id"],
                record["current_step"],
                json.dumps(record["completed_steps"]),
                record["updated_at"],
                record["version"],
                int(record["closed"]),
            )
        except sqlite3.IntegrityError:
            raise DuplicateRequestError(state.request_id) from None
        logger.debug(f"Created workflow state for request_id={state.request_id}")

    async def get(self, request_id: str) -> WorkflowState | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT * FROM workflow_states WHERE request_id = ?",
            request_id,
        )
        if not row:
            return None
        return self._row_to_state(row)

    async def load(self, request_id: str) -> WorkflowState:
        state = await self.get(request_id)
        if state is None:
            raise NotFoundError(request_id)
        return state

    async def save(self, state: WorkflowState) -> None:
        record = state.to_record()
        updated = await asyncio.to_thread(
            self._execute,
            """
            UPDATE workflow_states
            SET current_step = ?, completed_steps = ?, updated_at = ?, version = ?, closed = ?
            WHERE request_id = ? AND version = ?
            """,
            record["current_step"],
            json.dumps(record["completed_steps"]),
            record["updated_at"],
            record["version"],
            int(record["closed"]),
            record["request_id"],
            state.version - 1,
        )
        if updated:
            logger.debug(
                f"Saved workflow state for request_id={state.request_id} version={state.version}"
            )
            return

        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT version FROM workflow_states WHERE request_id = ?",
            state.request_id,
        )
        if row is None:
            raise NotFoundError(state.request_id)
        raise ConcurrencyConflictError(state.request_id, state.version - 1, row["version"])

    async def delete(self, request_id: str) -> None:
        deleted = await asyncio.to_thread(
            self._execute,
            "DELETE FROM workflow_states WHERE request_id = ?",
            request_id,
        )
        if not deleted:
            raise NotFoundError(request_id)

    async def list_states(self) -> list[WorkflowState]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT * FROM workflow_states ORDER BY request_id",
        )
        return [self._row_to_state(row) for row in rows]
