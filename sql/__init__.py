"""
=========================================
Fluent SQL statement builder package.
=========================================

This package assembles SELECT/INSERT/UPDATE/DELETE statements through
chained calls. Every user value is passed as a bound parameter; SQL text
only contains placeholders.

The package follows a clear organization:
    - conditions.py: Condition nodes, binding table and the WHERE compiler
    - query_builder.py: Pure statement builders (_builder suffix) and quoting
    - query.py: The chainable QueryBuilder and its terminal operations
    - db.py: Module-level accessor for a swappable default ConnectionManager
    - exceptions.py: Construction-time error kinds

Architecture:
    - query.py imports from conditions.py and query_builder.py (not vice versa)
    - Statement builders are pure functions (no side effects)
    - Execution goes through utils.database_utils.ConnectionManager

Example:
    >>> from sql import QueryBuilder
    >>> from utils import ConnectionManager
    >>>
    >>> manager = ConnectionManager('sqlite:///app.db')
    >>> query = (
    ...     QueryBuilder('users', manager=manager)
    ...     .where('status', 'active')
    ...     .or_where(lambda q: q.where('role', 'admin').where('age', '>=', 18))
    ... )
    >>> query.to_sql()
    ('SELECT * FROM `users` WHERE `status` = :w1 OR (`role` = :w2 AND `age` >= :w3)',
     {'w1': 'active', 'w2': 'admin', 'w3': 18})
"""

__version__ = "1.0.0"
__all__ = [
    # Conditions
    'ConditionNode', 'BindingTable', 'compile_conditions', 'compile_where',
    # Statement builders
    'Raw', 'quote_identifier', 'select_builder', 'count_builder',
    'insert_builder', 'update_builder', 'delete_builder', 'pagination_builder',
    # Builder
    'QueryBuilder',
    # Errors
    'QueryBuilderError', 'InvalidOperatorError', 'InvalidDirectionError',
    'InvalidConnectiveError', 'EmptyInputError', 'ExecutionError',
]

from .conditions import BindingTable, ConditionNode, compile_conditions, compile_where
from .exceptions import (
    EmptyInputError,
    ExecutionError,
    InvalidConnectiveError,
    InvalidDirectionError,
    InvalidOperatorError,
    QueryBuilderError,
)
from .query import QueryBuilder
from .query_builder import (
    Raw,
    count_builder,
    delete_builder,
    insert_builder,
    pagination_builder,
    quote_identifier,
    select_builder,
    update_builder,
)
