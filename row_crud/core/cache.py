"""Statement cache - memoizes synthesized statement sets.

Entries are keyed by record type and by the builder's dialect key (dialect,
naming policy, default schema), so one cache can be shared by databases of
different dialects without handing one of them the other's SQL.

Synthesis is pure and deterministic, so two callers racing on the first use
of a type may both build; the later write wins and both results are
byte-identical. Entries are never evicted: the number of record types in a
process is small and fixed.
"""

from __future__ import annotations

from collections.abc import Hashable
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from row_crud.sql.statements import SqlStatements


class StatementCache:
    """Memo of SqlStatements per record type and dialect.

    Construct once at startup and hand it to every Database that should
    share it.
    """

    def __init__(self) -> None:
        self._statements: dict[tuple[type, Hashable], SqlStatements] = {}

    def get_or_build(
        self,
        record_type: type,
        builder: Callable[[], SqlStatements],
        dialect: Hashable = None,
    ) -> SqlStatements:
        """Return the cached statements for *record_type*, building on first use.

        Args:
            record_type: The record class the statements belong to.
            builder: Zero-argument callable that synthesizes the statements.
            dialect: Key of the statement builder, see ``SqlBuilder.dialect_key``.

        Raises:
            MappingError: Propagated from *builder* when the type's metadata
                cannot produce a statement set. Nothing is cached in that case.
        """
        key = (record_type, dialect)
        statements = self._statements.get(key)
        if statements is None:
            statements = builder()
            self._statements[key] = statements
        return statements

    def has(self, record_type: type, dialect: Hashable = None) -> bool:
        """Check if statements for a record type are cached.

        Without *dialect*, any dialect counts.
        """
        if dialect is not None:
            return (record_type, dialect) in self._statements
        return any(cached is record_type for cached, _ in self._statements)

    @property
    def record_types(self) -> list[type]:
        """Cached record types, sorted by class name."""
        return sorted({t for t, _ in self._statements}, key=lambda t: t.__qualname__)

    def __len__(self) -> int:
        """Number of cached statement sets."""
        return len(self._statements)
