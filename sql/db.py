"""
==========================
Default database accessor.
==========================

Thin module-level delegators to one default ConnectionManager. The manager
is created lazily from core.config on first use and can be replaced at any
time (tests install a manager bound to SQLite or a recording fake).

Example:
    >>> from sql import db
    >>>
    >>> db.set_manager(ConnectionManager('sqlite:///app.db'))
    >>> db.table('users').where('id', 1).first()
    >>> db.select("SELECT * FROM users WHERE status = :status", {'status': 'active'})
    >>> db.transaction(lambda m: m.table('users').where('id', 1).delete())
"""

import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sql.query import QueryBuilder
from utils.database_utils import ConnectionManager, Params

logger = logging.getLogger(__name__)

T = TypeVar('T')

_manager: Optional[ConnectionManager] = None


def get_manager() -> ConnectionManager:
    """Return the default manager, building it from configuration if needed."""
    global _manager
    if _manager is None:
        _manager = ConnectionManager.from_config()
        logger.debug("Default ConnectionManager created from configuration")
    return _manager


def set_manager(manager: ConnectionManager) -> None:
    """Install manager as the default for every facade call."""
    global _manager
    _manager = manager


def reset_manager() -> None:
    """Close and forget the default manager."""
    global _manager
    if _manager is not None:
        _manager.close()
    _manager = None


def set_debug(debug: bool) -> None:
    """Toggle SQL/bindings debug output on the default manager.

    Output goes to the sql.debug logger, which prints to stdout at INFO when
    logging has not been configured.
    """
    get_manager().debug = debug


def table(name: str) -> QueryBuilder:
    return QueryBuilder(name, manager=get_manager())


def select(sql: str, params: Params = None) -> List[Dict[str, Any]]:
    return get_manager().query(sql, params)


def select_one(sql: str, params: Params = None) -> Optional[Dict[str, Any]]:
    return get_manager().query_one(sql, params)


def statement(sql: str, params: Params = None) -> int:
    """Run a non-row statement and return the affected row count."""
    return get_manager().execute(sql, params)


def transaction(fn: Callable[[ConnectionManager], T]) -> T:
    return get_manager().transaction(fn)
