"""
db/query_builder.py
-------------------
Composable SQL fragments for partial updates and filtered searches.
Column names are always emitted as ``sql.Identifier`` and values as
``%s`` placeholders, so request data never reaches the SQL text.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from psycopg2 import sql

from utils.errors import InvalidInput


@dataclass
class PartialUpdate:
    """
    SET clause for an UPDATE statement.

    Attributes:
        set_clause: ``"col1"=%s, "col2"=%s`` as a composable.
        values: Values matching the placeholders, in order.
        columns: Storage column names, in the same order.
    """
    set_clause: sql.Composed
    values: list = field(default_factory=list)
    columns: list[str] = field(default_factory=list)


@dataclass
class FilterClause:
    """
    WHERE clause for a filtered SELECT.

    ``where`` is an empty composable when no criterion was given.
    """
    where: sql.Composable
    values: list = field(default_factory=list)


def sql_for_partial_update(
    data: Mapping[str, Any],
    js_to_sql: Mapping[str, str],
    allowed: Optional[set[str]] = None,
) -> PartialUpdate:
    """
    Build the SET clause of a partial update.

    Args:
        data: Field name -> new value. Must contain at least one entry.
        js_to_sql: Field name -> column name. Fields not in it keep their name.
        allowed: If given, the only column names that may be assigned.

    Returns:
        A PartialUpdate with one fragment and one value per input field,
        in input order.

    Raises:
        InvalidInput: If ``data`` is empty or names a column outside ``allowed``.

    Example:
        sql_for_partial_update({"firstName": "Aliya", "age": 32},
                               {"firstName": "first_name"})
        -> set_clause: "first_name"=%s, "age"=%s
           values: ["Aliya", 32]
    """
    if not data:
        raise InvalidInput("No data")

    columns: list[str] = []
    values: list = []
    for name, value in data.items():
        column = js_to_sql.get(name, name)
        if allowed is not None and column not in allowed:
            raise InvalidInput(f"Cannot update field: {name}")
        columns.append(column)
        values.append(value)

    set_clause = sql.SQL(", ").join(
        sql.SQL("{} = {}").format(sql.Identifier(col), sql.Placeholder())
        for col in columns
    )
    return PartialUpdate(set_clause=set_clause, values=values, columns=columns)


def listing_filter_where(
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    location: Optional[str] = None,
) -> FilterClause:
    """
    Build the WHERE clause for a listing search.

    Criteria are ANDed in the order min_price, max_price, location.
    ``None`` omits a bound (0 is a real bound); location is a
    case-insensitive literal substring match and is omitted when empty.

    Example:
        listing_filter_where(max_price=1000, location="new")
        -> WHERE "price" <= %s AND "location" ILIKE %s
           values: [1000, "%new%"]

    The caller rejects min_price > max_price before calling this.
    """
    parts: list[sql.Composable] = []
    values: list = []

    if min_price is not None:
        parts.append(sql.SQL("{} >= %s").format(sql.Identifier("price")))
        values.append(min_price)

    if max_price is not None:
        parts.append(sql.SQL("{} <= %s").format(sql.Identifier("price")))
        values.append(max_price)

    if location:
        parts.append(sql.SQL("{} ILIKE %s").format(sql.Identifier("location")))
        values.append(_contains(location))

    return FilterClause(where=_where(parts), values=values)


def user_filter_where(username: Optional[str] = None) -> FilterClause:
    """WHERE clause for the user search: case-insensitive partial username match."""
    parts: list[sql.Composable] = []
    values: list = []

    if username:
        parts.append(sql.SQL("{} ILIKE %s").format(sql.Identifier("username")))
        values.append(_contains(username))

    return FilterClause(where=_where(parts), values=values)


def _where(parts: list[sql.Composable]) -> sql.Composable:
    if not parts:
        return sql.SQL("")
    return sql.SQL("WHERE ") + sql.SQL(" AND ").join(parts)


def _contains(term: str) -> str:
    """ILIKE pattern matching ``term`` literally anywhere in the column."""
    # Backslash is PostgreSQL's default LIKE escape character.
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
