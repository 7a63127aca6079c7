"""
==============================
Query builder error hierarchy.
==============================

Construction-time errors are raised synchronously by the offending chain
call, before any statement reaches the driver. Execution-time errors are
SQLAlchemy's own exceptions and propagate unchanged; ExecutionError is
exported so callers can catch them by kind without importing SQLAlchemy.

Classes:
    QueryBuilderError: Base class for builder validation errors
    InvalidOperatorError: Comparison operator outside the allow-list
    InvalidDirectionError: ORDER BY direction other than ASC/DESC
    InvalidConnectiveError: Group connective other than AND/OR
    EmptyInputError: insert()/update() called without columns
"""

from sqlalchemy.exc import StatementError

__all__ = [
    'QueryBuilderError',
    'InvalidOperatorError',
    'InvalidDirectionError',
    'InvalidConnectiveError',
    'EmptyInputError',
    'ExecutionError',
]

# Driver failures (prepare/bind/execute) surface as the native exception
ExecutionError = StatementError


class QueryBuilderError(Exception):
    """Base exception for query construction errors."""
    pass


class InvalidOperatorError(QueryBuilderError, ValueError):
    """Exception raised for an unsupported comparison operator."""

    def __init__(self, operator: str):
        self.operator = operator
        super().__init__(f"Unsupported operator: {operator}")


class InvalidDirectionError(QueryBuilderError, ValueError):
    """Exception raised when an order direction is not ASC or DESC."""

    def __init__(self, direction: str):
        self.direction = direction
        super().__init__(f"order_by direction must be ASC or DESC, got {direction!r}")


class InvalidConnectiveError(QueryBuilderError, ValueError):
    """Exception raised when a nested group connective is not AND or OR."""

    def __init__(self, connective: str):
        self.connective = connective
        super().__init__(f"Connective must be AND or OR, got {connective!r}")


class EmptyInputError(QueryBuilderError, ValueError):
    """Exception raised when insert or update receives no columns."""
    pass
