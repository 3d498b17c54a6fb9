"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from row_crud.core.connection import ConnectionConfig


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config with a single pooled connection."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


@pytest.fixture
def sqlite_file_config(tmp_path: Path) -> ConnectionConfig:
    """File-backed SQLite config; every pooled connection sees the same data."""
    return ConnectionConfig(driver="sqlite", database=str(tmp_path / "app.db"), pool_size=2)


@pytest.fixture
def create_table():
    """Helper to run DDL on a fresh sync connection manager.

    Usage:
        create_table(manager, "CREATE TABLE Sample (Id INTEGER PRIMARY KEY, Name TEXT)")
    """

    def _create(manager, *ddl: str) -> None:
        with manager.get_connection() as conn:
            for statement in ddl:
                conn.execute(statement)
            conn.commit()

    return _create
