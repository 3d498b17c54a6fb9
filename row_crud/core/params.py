"""SQL parameter normalization.

Synthesized statements use ``@name`` placeholders. Before execution they are
converted to the driver's paramstyle, leaving string literals and
``@@SERVER_VARIABLE`` references untouched.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

from row_crud.core.exceptions import ParameterBindingError

# Matches @name but not @@variable and not inside words (e.g. e-mail literals)
_PARAM_PATTERN = re.compile(r"(?<![@\w])@([a-zA-Z_]\w*)")

# Matches single-quoted string literals (with escaped quotes handled)
_STRING_LITERAL_PATTERN = re.compile(r"'(?:[^'\\]|\\.)*'")

_REPLACEMENTS = {
    "named": r":\1",
    "pyformat": r"%(\1)s",
    "qmark": "?",
}


def normalize_params(
    sql: str,
    params: dict[str, Any] | None,
    paramstyle: str,
) -> tuple[str, dict[str, Any] | tuple[Any, ...]]:
    """Convert ``@name`` parameters to the target paramstyle.

    Args:
        sql: SQL string with ``@name`` parameters.
        params: Parameter values keyed by name. Extra keys are ignored.
        paramstyle: 'named' (``:name``), 'pyformat' (``%(name)s``) or
            'qmark' (``?`` with positional values).

    Returns:
        The converted SQL and the parameters in the shape the driver expects.

    Raises:
        ParameterBindingError: If a positional value is missing from *params*.
    """
    if paramstyle not in _REPLACEMENTS:
        raise ParameterBindingError(sql, f"unsupported paramstyle '{paramstyle}'")

    converted, names = _convert(sql, paramstyle)
    values = params or {}
    if paramstyle != "qmark":
        return converted, dict(values)

    try:
        return converted, tuple(values[name] for name in names)
    except KeyError as e:
        raise ParameterBindingError(sql, f"missing parameter {e}") from None


@lru_cache(maxsize=512)
def _convert(sql: str, paramstyle: str) -> tuple[str, tuple[str, ...]]:
    """Rewrite placeholders and collect parameter names in order of appearance."""
    replacement = _REPLACEMENTS[paramstyle]
    parts: list[str] = []
    names: list[str] = []
    last_end = 0

    for match in _STRING_LITERAL_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            parts.append(_rewrite(sql[last_end:start], replacement, names))
        # Keep string literal as-is
        parts.append(match.group())
        last_end = end

    if last_end < len(sql):
        parts.append(_rewrite(sql[last_end:], replacement, names))

    return "".join(parts), tuple(names)


def _rewrite(segment: str, replacement: str, names: list[str]) -> str:
    names.extend(_PARAM_PATTERN.findall(segment))
    return _PARAM_PATTERN.sub(replacement, segment)
