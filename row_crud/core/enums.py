"""Enumerations shared across row_crud."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    SQLSERVER = "sqlserver"


class NamingPolicy(Enum):
    """How identifiers are rendered in synthesized SQL."""

    VERBATIM = "verbatim"
    SNAKE_CASE = "snake_case"
    QUOTED_EXACT = "quoted_exact"


class RepositoryAction(Enum):
    """Action a repository was performing when something happened."""

    GET = "get"
    GET_ALTERNATE = "get_alternate"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class StatementKind(Enum):
    """Statement filter for the narrow column extraction variant."""

    INSERT = "insert"
    UPDATE = "update"
