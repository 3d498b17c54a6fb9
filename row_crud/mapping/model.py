"""Row hydration.

ModelMapper turns row dicts into records. Pydantic models are validated with
``model_validate`` (so column values are coerced to the field types);
dataclasses and plain classes are called with the row as keyword arguments.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from row_crud.core.exceptions import HydrationError

T = TypeVar("T")


class ModelMapper(Generic[T]):
    """Build ``target_class`` instances from rows.

    Row keys are renamed through *aliases* first. When *fields* is given,
    keys are then matched to those field names ignoring case (PostgreSQL
    folds unquoted aliases to lower case), and columns that match no field
    are dropped, which is what ``SELECT *`` dialects need.

    Args:
        target_class: Dataclass, Pydantic model or plain class.
        aliases: Column name to field name, matched case-insensitively.
        fields: Field names the record is constructed from.
    """

    def __init__(
        self,
        target_class: type[T],
        aliases: dict[str, str] | None = None,
        fields: list[str] | None = None,
    ) -> None:
        self._target_class = target_class
        self._aliases = {column.lower(): name for column, name in (aliases or {}).items()}
        self._fields = None if fields is None else {name.lower(): name for name in fields}
        self._validates = isinstance(target_class, type) and issubclass(target_class, BaseModel)

    def _record_values(self, row: dict[str, Any]) -> dict[str, Any]:
        if not self._aliases and self._fields is None:
            return row
        values: dict[str, Any] = {}
        for key, value in row.items():
            name = self._aliases.get(key.lower(), key)
            if self._fields is not None:
                name = self._fields.get(name.lower())
            if name is not None:
                values[name] = value
        return values

    def map_one(self, row: dict[str, Any]) -> T:
        """Hydrate one row.

        Raises:
            HydrationError: If the row does not fit the record class.
        """
        values = self._record_values(row)
        try:
            if self._validates:
                return self._target_class.model_validate(values)  # type: ignore[attr-defined, no-any-return]
            return self._target_class(**values)
        except (ValidationError, TypeError) as e:
            raise HydrationError(self._target_class.__name__, str(e)) from e

    def map_many(self, rows: list[dict[str, Any]]) -> list[T]:
        return [self.map_one(row) for row in rows]
