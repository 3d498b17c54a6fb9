"""Hand-written statements that replace synthesized ones per action."""

from __future__ import annotations

from dataclasses import dataclass

from row_crud.core.enums import RepositoryAction


@dataclass(frozen=True)
class CustomSql:
    """Statements a repository runs instead of the synthesized ones.

    Each statement is bound like the one it replaces: ``get`` receives
    ``@id``, while ``insert``, ``update`` and ``delete`` receive every mapped
    column by parameter name. A custom ``insert`` must return the new key as
    the first column of its first row. Stored procedures are called through
    SQL text, e.g. ``EXEC dbo.InsertSample @Name, @Description`` or
    ``SELECT insert_sample(@Name, @Description)``.

    Alternate-key lookups and ``update_columns`` always use synthesized SQL.
    """

    get: str | None = None
    insert: str | None = None
    update: str | None = None
    delete: str | None = None

    def for_action(self, action: RepositoryAction) -> str | None:
        return {
            RepositoryAction.GET: self.get,
            RepositoryAction.INSERT: self.insert,
            RepositoryAction.UPDATE: self.update,
            RepositoryAction.DELETE: self.delete,
        }.get(action)
