"""Unit tests for parameter normalization."""

from __future__ import annotations

import pytest

from row_crud.core.exceptions import ParameterBindingError
from row_crud.core.params import normalize_params


class TestNormalizeParams:
    def test_named_conversion(self) -> None:
        sql, params = normalize_params("SELECT * FROM t WHERE id = @id", {"id": 1}, "named")
        assert sql == "SELECT * FROM t WHERE id = :id"
        assert params == {"id": 1}

    def test_pyformat_conversion(self) -> None:
        sql, _ = normalize_params(
            "UPDATE t SET name=@Name WHERE id=@Id", {"Name": "a", "Id": 1}, "pyformat"
        )
        assert sql == "UPDATE t SET name=%(Name)s WHERE id=%(Id)s"

    def test_qmark_orders_values_by_appearance(self) -> None:
        sql, params = normalize_params(
            "UPDATE t SET a=@A, b=@B WHERE id=@Id",
            {"Id": 7, "B": "b", "A": "a", "Unused": 0},
            "qmark",
        )
        assert sql == "UPDATE t SET a=?, b=? WHERE id=?"
        assert params == ("a", "b", 7)

    def test_qmark_repeated_parameter(self) -> None:
        _, params = normalize_params("SELECT @x, @x", {"x": 3}, "qmark")
        assert params == (3, 3)

    def test_qmark_missing_parameter(self) -> None:
        with pytest.raises(ParameterBindingError, match="missing parameter"):
            normalize_params("SELECT * FROM t WHERE id = @id", {}, "qmark")

    def test_unsupported_paramstyle(self) -> None:
        with pytest.raises(ParameterBindingError, match="unsupported paramstyle"):
            normalize_params("SELECT 1", None, "format")

    def test_string_literal_exclusion(self) -> None:
        sql, _ = normalize_params(
            "SELECT * FROM t WHERE tag = '@literal' AND id = @id", {"id": 1}, "named"
        )
        assert sql == "SELECT * FROM t WHERE tag = '@literal' AND id = :id"

    def test_server_variables_untouched(self) -> None:
        sql, params = normalize_params("SELECT @@ROWCOUNT", None, "qmark")
        assert sql == "SELECT @@ROWCOUNT"
        assert params == ()

    def test_no_params(self) -> None:
        sql, params = normalize_params("SELECT 1", None, "named")
        assert sql == "SELECT 1"
        assert params == {}


class TestInsertStatements:
    def test_returning_clause_keeps_positional_order(self) -> None:
        sql, params = normalize_params(
            "INSERT INTO t (a, b) VALUES (@A, @B) RETURNING id;", {"B": 2, "A": 1}, "qmark"
        )
        assert sql == "INSERT INTO t (a, b) VALUES (?, ?) RETURNING id;"
        assert params == (1, 2)

    def test_email_like_text_is_not_a_parameter(self) -> None:
        sql, params = normalize_params("SELECT 'x' WHERE mail=user@host", None, "qmark")
        assert sql == "SELECT 'x' WHERE mail=user@host"
        assert params == ()
