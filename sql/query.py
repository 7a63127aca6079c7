"""
=====================
Fluent query builder.
=====================

QueryBuilder collects table, columns, joins, conditions, grouping, ordering
and paging through chained calls, then compiles them with the statement
builders in sql.query_builder and runs the result through a
ConnectionManager. Every value ends up in the builder's BindingTable; SQL
text only ever references placeholders.

Nested condition groups (or_where, where_nested) are built on a scoped
sub-builder that shares the parent's BindingTable, so generated parameter
names stay unique across any depth of nesting.

Example:
    >>> from sql.query import QueryBuilder
    >>>
    >>> rows = (
    ...     QueryBuilder('posts p', manager=manager)
    ...     .select('p.id', 'p.title')
    ...     .where('p.status', 'published')
    ...     .where_nested(lambda q: q
    ...         .where('p.title', 'LIKE', '%sql%')
    ...         .or_where(lambda q2: q2.where('p.body', 'LIKE', '%sql%')))
    ...     .order_by('p.created_at', 'DESC')
    ...     .limit(10)
    ...     .get()
    ... )
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from sql.conditions import AND, CONNECTIVES, OR, BindingTable, ConditionNode, compile_conditions, compile_where
from sql.exceptions import EmptyInputError, InvalidConnectiveError, InvalidDirectionError, InvalidOperatorError
from sql.query_builder import (
    ALL_COLUMNS,
    Raw,
    column_list,
    count_builder,
    delete_builder,
    insert_builder,
    pagination_builder,
    quote_identifier,
    render_order,
    select_builder,
    split_table_alias,
    update_builder,
)

OPERATORS = ('=', '!=', '<>', '<', '>', '<=', '>=', 'LIKE', 'NOT LIKE')
DIRECTIONS = ('ASC', 'DESC')

# Binding name prefixes, one per call-site kind
WHERE_PREFIX = 'w'
IN_PREFIX = 'in'
INSERT_PREFIX = 'i'
UPDATE_PREFIX = 'u'

_MISSING = object()


class QueryBuilder:
    """Chainable SELECT/INSERT/UPDATE/DELETE builder for one table.

    State is mutable and owned by the instance; build one builder per
    logical query and do not share it between threads.

    Attributes:
        table: Target table name
        alias: Optional table alias ("posts p" -> alias "p")
    """

    def __init__(self, table: str, manager=None, bindings: Optional[BindingTable] = None):
        """Initialize the builder.

        Args:
            table: Table name, optionally followed by an alias
            manager: ConnectionManager for terminal operations (defaults to sql.db's manager)
            bindings: Shared binding table (used by nested sub-builders)
        """
        self.table, self.alias = split_table_alias(table)
        self._manager = manager
        self._bindings = bindings if bindings is not None else BindingTable()
        self._columns: List[str] = [ALL_COLUMNS]
        self._joins: List[Tuple[str, str, str]] = []
        self._wheres: List[ConditionNode] = []
        self._groups: List[str] = []
        self._havings: List[str] = []
        self._orders: List[str] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._distinct = False

    def __repr__(self):
        return f"<QueryBuilder table={self.table!r} alias={self.alias!r} conditions={len(self._wheres)}>"

    @property
    def bindings(self) -> Dict[str, Any]:
        """Copy of every value bound so far."""
        return self._bindings.as_dict()

    @property
    def conditions(self) -> List[ConditionNode]:
        return list(self._wheres)

    # ------------------------------------------------------------------
    # Columns, joins
    # ------------------------------------------------------------------

    def select(self, *columns) -> 'QueryBuilder':
        """Set the output columns; the first call replaces '*', later calls append."""
        columns = column_list(columns)
        if self._columns == [ALL_COLUMNS]:
            self._columns = columns or [ALL_COLUMNS]
        else:
            self._columns.extend(columns)
        return self

    def distinct(self) -> 'QueryBuilder':
        self._distinct = True
        return self

    def inner_join(self, table: str, condition: str) -> 'QueryBuilder':
        self._joins.append(('INNER JOIN', table, condition))
        return self

    def left_join(self, table: str, condition: str) -> 'QueryBuilder':
        self._joins.append(('LEFT JOIN', table, condition))
        return self

    def right_join(self, table: str, condition: str) -> 'QueryBuilder':
        self._joins.append(('RIGHT JOIN', table, condition))
        return self

    def join(self, table: str, condition: str) -> 'QueryBuilder':
        return self.inner_join(table, condition)

    # ------------------------------------------------------------------
    # Conditions
    # ------------------------------------------------------------------

    def _add(self, text: str, connective: str = AND, is_group: bool = False) -> 'QueryBuilder':
        self._wheres.append(ConditionNode(connective, text, is_group))
        return self

    def _comparison(self, column: str, operator_or_value: Any, value: Any) -> str:
        if value is _MISSING:
            operator, value = '=', operator_or_value
        else:
            operator = str(operator_or_value)
        operator = ' '.join(operator.upper().split())
        if operator not in OPERATORS:
            raise InvalidOperatorError(operator)

        if value is None and operator == '=':
            return f"{quote_identifier(column)} IS NULL"
        if value is None and operator in ('!=', '<>'):
            return f"{quote_identifier(column)} IS NOT NULL"

        name = self._bindings.allocate(WHERE_PREFIX, value)
        return f"{quote_identifier(column)} {operator} :{name}"

    def where(self, column: str, operator_or_value: Any, value: Any = _MISSING) -> 'QueryBuilder':
        """
        Add an AND comparison.

        Args:
            column: Column reference
            operator_or_value: Operator when value is given, otherwise the value ('=' implied)
            value: Compared value

        Raises:
            InvalidOperatorError: If the operator is not in the allow-list
        """
        return self._add(self._comparison(column, operator_or_value, value))

    def where_raw(self, sql: str, bindings: Optional[Mapping[str, Any]] = None) -> 'QueryBuilder':
        """Add verbatim SQL; bindings are merged under their own names."""
        self._bindings.merge(bindings or {})
        return self._add(sql)

    def or_where_raw(self, sql: str, bindings: Optional[Mapping[str, Any]] = None) -> 'QueryBuilder':
        self._bindings.merge(bindings or {})
        return self._add(f"({sql})", OR, is_group=True)

    def _scoped(self) -> 'QueryBuilder':
        """Sub-builder sharing only this builder's binding table."""
        scope = QueryBuilder(self.table, manager=self._manager, bindings=self._bindings)
        scope.alias = self.alias
        return scope

    def _collect(self, callback: Callable[['QueryBuilder'], Any]) -> List[ConditionNode]:
        scope = self._scoped()
        callback(scope)
        return scope._wheres

    def or_where(self, callback: Any, operator_or_value: Any = _MISSING, value: Any = _MISSING) -> 'QueryBuilder':
        """
        Add an OR group.

        The callback receives a sub-builder; the conditions it adds are
        AND-joined and parenthesised as one OR group. A callback that adds
        nothing contributes nothing. or_where(column, [operator,] value)
        adds a single OR comparison.

        Example:
            >>> q.where('a', 1).or_where(lambda s: s.where('b', 2).where('c', 3))
            # WHERE `a` = :w1 OR (`b` = :w2 AND `c` = :w3)
        """
        if not callable(callback):
            if operator_or_value is _MISSING:
                raise TypeError("or_where() needs a callback or a column and a value")
            text = self._comparison(callback, operator_or_value, value)
            return self._add(f"({text})", OR, is_group=True)

        nodes = self._collect(callback)
        if nodes:
            self._add('(' + ' AND '.join(node.text for node in nodes) + ')', OR, is_group=True)
        return self

    def where_nested(self, callback: Callable[['QueryBuilder'], Any], connective: str = AND) -> 'QueryBuilder':
        """
        Add a parenthesised group compiled with full AND/OR grouping.

        Args:
            callback: Receives a sub-builder to add the group's conditions
            connective: AND or OR, joining the group to its predecessor

        Raises:
            InvalidConnectiveError: If connective is not AND or OR
        """
        connective = connective.upper()
        if connective not in CONNECTIVES:
            raise InvalidConnectiveError(connective)

        nodes = self._collect(callback)
        if nodes:
            self._add(f"({compile_conditions(nodes)})", connective, is_group=True)
        return self

    def where_in(self, column: str, values: Iterable[Any]) -> 'QueryBuilder':
        """Add `column IN (...)`; an empty list yields the unsatisfiable `0 = 1`."""
        values = list(values)
        if not values:
            return self._add('0 = 1')

        placeholders = ', '.join(f":{self._bindings.allocate(IN_PREFIX, v)}" for v in values)
        return self._add(f"{quote_identifier(column)} IN ({placeholders})")

    def where_not_in(self, column: str, values: Iterable[Any]) -> 'QueryBuilder':
        """Add `column NOT IN (...)`; an empty list adds nothing."""
        values = list(values)
        if not values:
            return self

        placeholders = ', '.join(f":{self._bindings.allocate(IN_PREFIX, v)}" for v in values)
        return self._add(f"{quote_identifier(column)} NOT IN ({placeholders})")

    def where_null(self, column: str) -> 'QueryBuilder':
        return self._add(f"{quote_identifier(column)} IS NULL")

    def where_not_null(self, column: str) -> 'QueryBuilder':
        return self._add(f"{quote_identifier(column)} IS NOT NULL")

    # ------------------------------------------------------------------
    # Grouping, ordering, paging
    # ------------------------------------------------------------------

    def group_by(self, *columns) -> 'QueryBuilder':
        self._groups.extend(column_list(columns))
        return self

    def having(self, sql: str, bindings: Optional[Mapping[str, Any]] = None) -> 'QueryBuilder':
        self._havings.append(sql)
        self._bindings.merge(bindings or {})
        return self

    def order_by(self, column: str, direction: str = 'ASC') -> 'QueryBuilder':
        """
        Add an ORDER BY column.

        Raises:
            InvalidDirectionError: If direction is not ASC or DESC
        """
        direction = direction.upper()
        if direction not in DIRECTIONS:
            raise InvalidDirectionError(direction)
        self._orders.append(render_order(column, direction))
        return self

    def order_by_raw(self, expression: str) -> 'QueryBuilder':
        self._orders.append(expression)
        return self

    def limit(self, n: int) -> 'QueryBuilder':
        self._limit = max(0, int(n))
        return self

    def offset(self, n: int) -> 'QueryBuilder':
        self._offset = max(0, int(n))
        return self

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def _compile_select(self, **overrides) -> str:
        parts = dict(
            table=self.table,
            columns=self._columns,
            alias=self.alias,
            joins=self._joins,
            where_sql=compile_where(self._wheres),
            group_by=self._groups,
            having_conditions=self._havings,
            order_by=self._orders,
            limit=self._limit,
            offset=self._offset,
            distinct=self._distinct,
        )
        parts.update(overrides)
        return select_builder(**parts)

    def to_sql(self) -> Tuple[str, Dict[str, Any]]:
        """Compile the SELECT statement without executing it."""
        return self._compile_select(), self.bindings

    def _connection_manager(self):
        if self._manager is None:
            from sql.db import get_manager

            self._manager = get_manager()
        return self._manager

    # ------------------------------------------------------------------
    # Terminal operations
    # ------------------------------------------------------------------

    def get(self) -> List[Dict[str, Any]]:
        """Run the SELECT and return every row."""
        sql, params = self.to_sql()
        return self._connection_manager().query(sql, params)

    def first(self) -> Optional[Dict[str, Any]]:
        """Run the SELECT with LIMIT 1 and return the row, or None."""
        return self._connection_manager().query_one(self._compile_select(limit=1), self.bindings)

    def value(self, column: str) -> Any:
        """Return a single column of the first row, or None."""
        row = self._connection_manager().query_one(
            self._compile_select(columns=[column], limit=1), self.bindings
        )
        if row is None:
            return None
        return next(iter(row.values()))

    def count(self, column: str = ALL_COLUMNS) -> int:
        """
        Count the rows this statement would return.

        Grouped or DISTINCT statements are counted through a subquery.

        Ordering, limit and offset are ignored; the builder state is left
        unchanged.
        """
        if self._groups or self._distinct:
            subquery = self._compile_select(order_by=[], limit=None, offset=None)
            sql = count_builder(subquery)
        else:
            sql = self._compile_select(
                columns=[f"COUNT({quote_identifier(column)}) AS aggregate"],
                order_by=[],
                limit=None,
                offset=None,
            )

        row = self._connection_manager().query_one(sql, self.bindings)
        return int(row['aggregate']) if row and row['aggregate'] is not None else 0

    def exists(self) -> bool:
        return self.count() > 0

    def paginate(self, per_page: int = 15, page: int = 1) -> Dict[str, Any]:
        """
        Return one page of rows with the pagination envelope.

        The total is counted before limit/offset are applied.

        Returns:
            Dictionary with data, total, per_page, current_page, last_page,
            from and to
        """
        total = self.count()
        result = pagination_builder(total, per_page, page)
        self.limit(per_page).offset((result['current_page'] - 1) * per_page)
        result['data'] = self.get()
        return result

    def insert(self, data: Mapping[str, Any]) -> Any:
        """
        Insert one row.

        Raises:
            EmptyInputError: If data is empty (nothing is sent to the database)

        Returns:
            The driver-reported last inserted id
        """
        if not data:
            raise EmptyInputError('insert data is empty')

        params: Dict[str, Any] = {}
        values = []
        for val in data.values():
            if isinstance(val, Raw):
                values.append(val.expression)
                params.update(val.bindings)
            else:
                name = self._bindings.next_name(INSERT_PREFIX)
                values.append(f":{name}")
                params[name] = val

        sql = insert_builder(self.table, list(data.keys()), values)
        return self._connection_manager().insert(sql, params)

    def update(self, data: Mapping[str, Any]) -> int:
        """
        Update matching rows.

        Values wrapped in Raw are emitted as SQL expressions; everything
        else is bound.

        Raises:
            EmptyInputError: If data is empty (nothing is sent to the database)

        Returns:
            Affected row count
        """
        if not data:
            raise EmptyInputError('update data is empty')

        params = self.bindings
        assignments = []
        for column, val in data.items():
            if isinstance(val, Raw):
                assignments.append(f"{quote_identifier(column)} = {val.expression}")
                params.update(val.bindings)
            else:
                name = self._bindings.next_name(UPDATE_PREFIX)
                assignments.append(f"{quote_identifier(column)} = :{name}")
                params[name] = val

        sql = update_builder(self.table, assignments, compile_where(self._wheres), self.alias)
        return self._connection_manager().execute(sql, params)

    def increment(self, column: str, amount: Any = 1, extra: Optional[Mapping[str, Any]] = None) -> int:
        """Add amount to column (and set any extra columns) on matching rows."""
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise TypeError(f"increment amount must be numeric, got {amount!r}")
        name = self._bindings.next_name(UPDATE_PREFIX)
        data = dict(extra or {})
        data[column] = Raw(f"{quote_identifier(column)} + :{name}", {name: amount})
        return self.update(data)

    def decrement(self, column: str, amount: Any = 1, extra: Optional[Mapping[str, Any]] = None) -> int:
        """Subtract amount from column on matching rows."""
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise TypeError(f"decrement amount must be numeric, got {amount!r}")
        return self.increment(column, -amount, extra)

    def delete(self) -> int:
        """Delete matching rows and return the affected row count."""
        sql = delete_builder(self.table, compile_where(self._wheres), self.alias)
        return self._connection_manager().execute(sql, self.bindings)
