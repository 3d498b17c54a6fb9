"""Identifier naming policy.

Turns a raw identifier (class, schema, field or column alias name) into the
form written into synthesized SQL. Parameter names never go through here.
"""

from __future__ import annotations

from row_crud.core.enums import NamingPolicy


def to_snake_case(identifier: str) -> str:
    """Insert ``_`` before each internal uppercase letter and lowercase.

    Examples:
        >>> to_snake_case("UserId")
        'user_id'
        >>> to_snake_case("id")
        'id'
    """
    return "".join(
        f"_{char.lower()}" if char.isupper() and index > 0 else char.lower()
        for index, char in enumerate(identifier)
    )


def quote_identifier(identifier: str, opening: str = '"', closing: str = '"') -> str:
    """Wrap an identifier in quote characters, doubling any embedded closer.

    Examples:
        >>> quote_identifier("UserId")
        '"UserId"'
        >>> quote_identifier("Order", "[", "]")
        '[Order]'
    """
    escaped = identifier.replace(closing, closing * 2)
    return f"{opening}{escaped}{closing}"


def format_identifier(identifier: str, policy: NamingPolicy) -> str:
    """Format an identifier according to *policy*."""
    if policy is NamingPolicy.SNAKE_CASE:
        return to_snake_case(identifier)
    if policy is NamingPolicy.QUOTED_EXACT:
        return quote_identifier(identifier)
    return identifier
