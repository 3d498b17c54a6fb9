"""Repository layer - generic CRUD over synthesized statements."""

from __future__ import annotations

from row_crud.repository.base import AsyncRepository, Repository, is_new_key
from row_crud.repository.custom import CustomSql
from row_crud.repository.hooks import RepositoryHooks

__all__ = [
    "Repository",
    "AsyncRepository",
    "RepositoryHooks",
    "CustomSql",
    "is_new_key",
]
