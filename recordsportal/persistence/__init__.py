"""Persistence layer for request workflow states."""

from __future__ import annotations

from typing import Optional

from ..config import RecordsPortalConfig, load_config
from .inmemory import InMemoryWorkflowStateRepository
from .repository import WorkflowStateRepository
from .sqlite import SQLiteWorkflowStateRepository

_repository_instance: WorkflowStateRepository | None = None


def _open_repository(database_url: Optional[str]) -> WorkflowStateRepository:
    if not database_url:
        return InMemoryWorkflowStateRepository()
    scheme, separator, location = database_url.partition("://")
    if separator and scheme == "sqlite" and location:
        return SQLiteWorkflowStateRepository(location)
    raise ValueError(f"Unsupported database backend: {database_url}")


def get_repository(
    database_url: Optional[str] = None, config: Optional[RecordsPortalConfig] = None
) -> WorkflowStateRepository:
    """Return the repository workflow states are stored in.

    Called without arguments it reuses the process-wide repository, so every
    service in one process sees the same requests. Otherwise ``database_url``
    wins over ``config.database_url`` (which :func:`load_config` has already
    resolved against the environment). No URL means an in-memory store.
    """

    global _repository_instance
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    config = config or load_config()
    _repository_instance = _open_repository(database_url or config.database_url)
    return _repository_instance


__all__ = [
    "WorkflowStateRepository",
    "SQLiteWorkflowStateRepository",
    "InMemoryWorkflowStateRepository",
    "get_repository",
]
