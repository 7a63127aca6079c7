"""
==========================
Utility Functions Package.
==========================

Database connectivity for the query builder.

Modules:
    database_utils: ConnectionManager, engine and connection string helpers
"""

__version__ = "1.0.0"
__all__ = [
    'ConnectionManager',
    'DatabaseConnectionError',
    'get_connection_string',
    'create_sqlalchemy_engine',
    'verify_connection'
]

from .database_utils import (
    ConnectionManager,
    DatabaseConnectionError,
    create_sqlalchemy_engine,
    get_connection_string,
    verify_connection,
)
