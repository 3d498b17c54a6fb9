"""Unit tests for StatementCache."""

from __future__ import annotations

from dataclasses import dataclass
from unittest.mock import MagicMock

import pytest

from row_crud.core.cache import StatementCache
from row_crud.core.enums import NamingPolicy
from row_crud.core.exceptions import MappingError
from row_crud.mapping.builder import describe
from row_crud.sql.postgresql import PostgresqlSqlBuilder
from row_crud.sql.sqlite import SqliteSqlBuilder
from row_crud.sql.sqlserver import SqlServerSqlBuilder


@dataclass
class Sample:
    Id: int = 0
    Name: str = ""


@dataclass
class Other:
    Id: int = 0
    Code: str = ""


class TestStatementCache:
    def test_builds_once(self) -> None:
        cache = StatementCache()
        descriptor = describe(Sample).auto_fields().build()
        builder = MagicMock(side_effect=lambda: SqliteSqlBuilder().build_statements(descriptor))

        first = cache.get_or_build(Sample, builder)
        second = cache.get_or_build(Sample, builder)

        assert first is second
        builder.assert_called_once_with()

    def test_has_and_len(self) -> None:
        cache = StatementCache()
        assert not cache.has(Sample)
        assert len(cache) == 0

        descriptor = describe(Sample).auto_fields().build()
        cache.get_or_build(Sample, lambda: SqliteSqlBuilder().build_statements(descriptor))

        assert cache.has(Sample)
        assert len(cache) == 1

    def test_record_types_sorted(self) -> None:
        cache = StatementCache()
        for record_type in (Sample, Other):
            descriptor = describe(record_type).auto_fields().build()
            cache.get_or_build(
                record_type, lambda d=descriptor: SqliteSqlBuilder().build_statements(d)
            )
        assert cache.record_types == [Other, Sample]

    def test_failed_build_is_not_cached(self) -> None:
        cache = StatementCache()
        builder = MagicMock(side_effect=MappingError("Sample", "boom"))

        with pytest.raises(MappingError):
            cache.get_or_build(Sample, builder)

        assert not cache.has(Sample)

    def test_caches_are_independent(self) -> None:
        descriptor = describe(Sample).auto_fields().build()
        one, two = StatementCache(), StatementCache()
        one.get_or_build(Sample, lambda: SqliteSqlBuilder().build_statements(descriptor))
        assert not two.has(Sample)

    def test_dialects_are_cached_separately(self) -> None:
        cache = StatementCache()
        descriptor = describe(Sample).auto_fields().build()
        postgres, sqlserver = PostgresqlSqlBuilder(), SqlServerSqlBuilder()

        pg = cache.get_or_build(
            Sample, lambda: postgres.build_statements(descriptor), postgres.dialect_key
        )
        ss = cache.get_or_build(
            Sample, lambda: sqlserver.build_statements(descriptor), sqlserver.dialect_key
        )

        assert pg.insert.endswith("RETURNING Id;")
        assert "OUTPUT [inserted].[Id]" in ss.insert
        assert len(cache) == 2
        assert cache.record_types == [Sample]
        assert cache.has(Sample, postgres.dialect_key)
        assert not cache.has(Sample, SqliteSqlBuilder().dialect_key)


class TestDialectKey:
    def test_naming_and_schema_are_part_of_the_key(self) -> None:
        assert PostgresqlSqlBuilder().dialect_key == ("PostgresqlSqlBuilder", "verbatim", "public")
        assert PostgresqlSqlBuilder().dialect_key != PostgresqlSqlBuilder(
            naming=NamingPolicy.SNAKE_CASE
        ).dialect_key
        assert PostgresqlSqlBuilder().dialect_key != PostgresqlSqlBuilder(
            default_schema="billing"
        ).dialect_key
