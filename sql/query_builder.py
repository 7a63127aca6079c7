"""
================================
SQL Statement Builder Utilities.
================================

This module provides the low-level building blocks that turn query builder
state into SQL text. All builders follow the _builder naming convention and
are pure functions: values never appear in the output, only placeholders
supplied by the caller.

Identifier helpers:
- quote_identifier: Quote a column reference unless it is a raw expression
- quote_table: Quote a table name (schema-qualified names part by part)
- split_table_alias: Split "posts p" into ("posts", "p")
- table_expression: Quoted table plus optional alias

Statement builders:
- join_builder: Construct one JOIN clause
- select_builder: Build SELECT statements
- count_builder: Wrap a SELECT in a COUNT(*) subquery
- insert_builder: Build INSERT statements
- update_builder: Build UPDATE statements
- delete_builder: Build DELETE statements
- pagination_builder: Compute the pagination envelope

Usage:
    from sql.query_builder import select_builder, quote_identifier

    sql = select_builder(
        table='posts',
        alias='p',
        columns=['p.id', 'COUNT(c.id) AS comments'],
        joins=[('LEFT JOIN', 'comments c', 'c.post_id = p.id')],
        where_sql=' WHERE `p`.`status` = :w1',
        group_by=['p.id'],
        limit=10
    )
"""

import math
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

QUOTE = '`'
ALL_COLUMNS = '*'
JOIN_TYPES = ('INNER JOIN', 'LEFT JOIN', 'RIGHT JOIN')

_TABLE_ALIAS = re.compile(r"^(\S+)\s+(?:AS\s+)?(\S+)$", re.IGNORECASE)


class Raw:
    """SQL expression used as a value in insert()/update() instead of a binding.

    Any values the expression references must be passed in bindings.

    Example:
        >>> Raw('`stock` - :qty', {'qty': 2})
    """

    def __init__(self, expression: str, bindings: Optional[Dict[str, Any]] = None):
        self.expression = expression
        self.bindings = dict(bindings or {})

    def __str__(self):
        return self.expression

    def __repr__(self):
        return f"Raw({self.expression!r})"


def _quote(name: str) -> str:
    return f"{QUOTE}{name.replace(QUOTE, QUOTE * 2)}{QUOTE}"


def is_raw_expression(identifier: str) -> bool:
    """Return True for references that must not be quoted.

    '*', anything with parentheses (function calls, subqueries) and
    anything carrying an explicit ' AS ' alias are passed through.
    """
    return (
        identifier == ALL_COLUMNS
        or '(' in identifier
        or ')' in identifier
        or ' as ' in identifier.lower()
    )


def quote_identifier(identifier: str) -> str:
    """
    Quote a column reference.

    Args:
        identifier: Column name, "table.column", "table.*" or a raw expression

    Returns:
        Quoted reference

    Example:
        >>> quote_identifier('a.b')
        '`a`.`b`'
        >>> quote_identifier('a.*')
        'a.*'
        >>> quote_identifier('COUNT(x) AS n')
        'COUNT(x) AS n'
    """
    if is_raw_expression(identifier):
        return identifier

    if '.' in identifier:
        table, column = identifier.split('.', 1)
        if column == ALL_COLUMNS:
            return f"{table}.*"
        return f"{_quote(table)}.{_quote(column)}"

    return _quote(identifier)


def quote_table(table: str) -> str:
    """Quote a table name; "schema.table" is quoted part by part."""
    return '.'.join(_quote(part) for part in table.split('.', 1))


def split_table_alias(table: str) -> Tuple[str, Optional[str]]:
    """
    Split a "name alias" or "name AS alias" table reference.

    Returns:
        (name, alias) with alias None when absent
    """
    match = _TABLE_ALIAS.match(table.strip())
    if match:
        return match.group(1), match.group(2)
    return table.strip(), None


def table_expression(table: str, alias: Optional[str] = None) -> str:
    """Quoted table name followed by its alias, if any."""
    expression = quote_table(table)
    if alias:
        expression += f" {alias}"
    return expression


def join_builder(join_type: str, table: str, condition: str) -> str:
    """
    Build a JOIN clause.

    Args:
        join_type: One of INNER JOIN, LEFT JOIN, RIGHT JOIN
        table: Table name, "name alias", or a parenthesised derived table
        condition: ON condition, emitted verbatim

    Returns:
        SQL JOIN clause
    """
    join_type = join_type.upper()
    if join_type not in JOIN_TYPES:
        raise ValueError(f"Unsupported join type: {join_type}")

    if table.strip().startswith('('):
        target = table
    else:
        target = table_expression(*split_table_alias(table))

    return f"{join_type} {target} ON {condition}"


def select_builder(
    table: str,
    columns: Sequence[str] = (ALL_COLUMNS,),
    alias: Optional[str] = None,
    joins: Optional[Sequence[Tuple[str, str, str]]] = None,
    where_sql: str = '',
    group_by: Optional[Sequence[str]] = None,
    having_conditions: Optional[Sequence[str]] = None,
    order_by: Optional[Sequence[str]] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    distinct: bool = False
) -> str:
    """
    Build a SELECT statement.

    Args:
        table: Main table name
        columns: Column references (quoted unless raw expressions)
        alias: Alias for the main table
        joins: (join_type, table, condition) triples in order
        where_sql: Compiled ' WHERE ...' clause or ''
        group_by: GROUP BY column references
        having_conditions: HAVING fragments, AND-joined
        order_by: Already-rendered ORDER BY expressions
        limit: LIMIT value
        offset: OFFSET value
        distinct: Use SELECT DISTINCT

    Returns:
        SQL SELECT statement
    """
    select_keyword = "SELECT DISTINCT" if distinct else "SELECT"

    if list(columns) == [ALL_COLUMNS]:
        column_clause = ALL_COLUMNS
    else:
        column_clause = ", ".join(quote_identifier(col) for col in columns)

    sql = f"{select_keyword} {column_clause} FROM {table_expression(table, alias)}"

    for join_type, join_table, condition in joins or ():
        sql += " " + join_builder(join_type, join_table, condition)

    sql += where_sql

    if group_by:
        sql += " GROUP BY " + ", ".join(quote_identifier(col) for col in group_by)

    if having_conditions:
        sql += " HAVING " + " AND ".join(having_conditions)

    if order_by:
        sql += " ORDER BY " + ", ".join(order_by)

    if limit is not None:
        sql += f" LIMIT {int(limit)}"

    if offset is not None:
        sql += f" OFFSET {int(offset)}"

    return sql


def count_builder(subquery_sql: str) -> str:
    """Count the rows a SELECT would return by wrapping it as a subquery."""
    return f"SELECT COUNT(*) AS aggregate FROM ({subquery_sql}) AS subquery"


def insert_builder(table: str, columns: Sequence[str], values: Sequence[str]) -> str:
    """
    Build a single-row INSERT statement.

    Args:
        table: Target table
        columns: Column names
        values: Rendered value expressions (":i1" placeholders or raw SQL)

    Returns:
        SQL INSERT statement
    """
    column_list = ", ".join(quote_identifier(col) for col in columns)
    return f"INSERT INTO {quote_table(table)} ({column_list}) VALUES ({', '.join(values)})"


def update_builder(
    table: str,
    assignments: Sequence[str],
    where_sql: str = '',
    alias: Optional[str] = None
) -> str:
    """
    Build an UPDATE statement.

    Args:
        table: Target table
        assignments: Rendered "`col` = expr" fragments
        where_sql: Compiled ' WHERE ...' clause or ''
        alias: Table alias

    Returns:
        SQL UPDATE statement
    """
    return f"UPDATE {table_expression(table, alias)} SET {', '.join(assignments)}{where_sql}"


def delete_builder(table: str, where_sql: str = '', alias: Optional[str] = None) -> str:
    """
    Build a DELETE statement.

    Aliased DELETE is accepted by MySQL and SQLite but not by every dialect.
    """
    return f"DELETE FROM {table_expression(table, alias)}{where_sql}"


def pagination_builder(total: int, per_page: int, page: int) -> Dict[str, Any]:
    """
    Compute the pagination envelope around one page of rows.

    Args:
        total: Total matching rows
        per_page: Rows per page (>= 1)
        page: Requested page, clamped to 1

    Returns:
        Dictionary with data (empty list, filled by the caller), total,
        per_page, current_page, last_page, from and to
    """
    if per_page < 1:
        raise ValueError(f"per_page must be at least 1, got {per_page}")
    page = max(1, page)
    offset = (page - 1) * per_page
    to = min(page * per_page, total)

    return {
        'data': [],
        'total': total,
        'per_page': per_page,
        'current_page': page,
        'last_page': math.ceil(total / per_page),
        'from': offset + 1 if to > offset else 0,
        'to': to if to > offset else 0,
    }


def render_order(column: str, direction: str) -> str:
    return f"{quote_identifier(column)} {direction}"


def column_list(columns: Sequence[Any]) -> List[str]:
    """Flatten select()/group_by() arguments into a list of strings."""
    flat: List[str] = []
    for column in columns:
        if isinstance(column, (list, tuple)):
            flat.extend(str(c) for c in column)
        else:
            flat.append(str(column))
    return flat
