"""
=========================================
Database connectivity and execution layer.
=========================================

Provides the ConnectionManager used by every QueryBuilder: one lazily
created SQLAlchemy connection per manager, statement execution with named
or positional bindings, and a transaction wrapper that commits on success
and rolls back then re-raises on any failure.

Key Features:
    - Connection string building from config
    - Lazy, cached connection creation (no pooling, no automatic retry)
    - Autocommit of standalone statements
    - transaction(fn) with rollback on any exception
    - Optional debug output of every statement and its bindings

Example:
    >>> from utils.database_utils import ConnectionManager
    >>>
    >>> manager = ConnectionManager('sqlite:///app.db')
    >>> manager.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
    >>> manager.insert("INSERT INTO users (name) VALUES (:name)", {'name': 'ann'})
    1
    >>> manager.query("SELECT * FROM users WHERE id = ?", [1])
    [{'id': 1, 'name': 'ann'}]
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection, CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import config
from core.logger import log_query

logger = logging.getLogger(__name__)

T = TypeVar('T')
Params = Union[Mapping[str, Any], Sequence[Any], None]
Row = Dict[str, Any]


class DatabaseConnectionError(Exception):
    """Exception raised when the database connection cannot be established."""
    pass


def get_connection_string(
    driver: str = None,
    host: str = None,
    port: int = None,
    user: str = None,
    password: str = None,
    database: str = None
) -> str:
    """
    Build a SQLAlchemy connection URL.

    Any argument left as None falls back to the configured value. When no
    argument is given and DATABASE_URL is set, that URL is returned as-is.

    Returns:
        Connection URL string

    Example:
        >>> get_connection_string(driver='mysql+pymysql', host='db', database='shop')
        'mysql+pymysql://root@db:3306/shop'
    """
    overrides = (driver, host, port, user, password, database)
    if config.db.url and all(value is None for value in overrides):
        return config.db.url

    password = password if password is not None else config.db_password
    return URL.create(
        drivername=driver or config.db.driver,
        username=user if user is not None else config.db_user,
        password=password or None,
        host=host if host is not None else config.db_host,
        port=port if port is not None else config.db_port,
        database=database if database is not None else config.db_name
    ).render_as_string(hide_password=False)


def create_sqlalchemy_engine(url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine.

    Args:
        url: Connection URL (defaults to the configured one)
        echo: Enable SQLAlchemy statement logging

    Returns:
        Configured SQLAlchemy Engine
    """
    return create_engine(
        url or config.get_connection_string(),
        echo=echo,
        pool_pre_ping=True  # Verify connections before using
    )


class ConnectionManager:
    """Owns one lazily created database connection.

    State moves from unconnected to connected on the first statement. A
    failed connection attempt raises DatabaseConnectionError and leaves the
    manager unconnected, so the next call tries again.

    Statements run outside transaction() are committed individually. The
    manager is not thread-safe; use one per worker.

    Attributes:
        url: Connection URL used when no engine is supplied
        debug: Log every statement and its bindings through core.logger.log_query

    Example:
        >>> manager = ConnectionManager.from_config()
        >>> manager.transaction(lambda db: db.execute(
        ...     "UPDATE stock SET qty = qty - 1 WHERE id = :id", {'id': 3}))
    """

    def __init__(
        self,
        url: Optional[str] = None,
        engine: Optional[Engine] = None,
        debug: bool = False,
        echo: bool = False
    ):
        """Initialize the manager without connecting.

        Args:
            url: SQLAlchemy connection URL
            engine: Existing engine to draw the connection from (not disposed on close)
            debug: Emit compiled SQL and bindings for every statement
            echo: Forwarded to create_engine when the manager builds the engine
        """
        if url is None and engine is None:
            raise ValueError("ConnectionManager needs a url or an engine")
        self.url = url
        self.debug = debug
        self.echo = echo
        self._engine = engine
        self._owns_engine = engine is None
        self._connection: Optional[Connection] = None
        self._transaction_depth = 0

    @classmethod
    def from_config(cls, settings=None) -> 'ConnectionManager':
        """Build a manager from a Config instance (defaults to core.config.config)."""
        settings = settings or config
        return cls(url=settings.get_connection_string(), debug=settings.debug)

    @property
    def connected(self) -> bool:
        return self._connection is not None

    @property
    def in_transaction(self) -> bool:
        return self._transaction_depth > 0

    def connection(self) -> Connection:
        """
        Return the cached connection, creating it on first use.

        Raises:
            DatabaseConnectionError: If the engine or connection cannot be created
        """
        if self._connection is None:
            try:
                if self._engine is None:
                    self._engine = create_sqlalchemy_engine(self.url, echo=self.echo)
                connection = self._engine.connect()
            except (SQLAlchemyError, ImportError) as e:
                logger.error(f"❌ Database connection failed: {e}")
                raise DatabaseConnectionError(f"Database connection failed: {e}") from e
            logger.info(f"✅ Connected to {self._engine.url.render_as_string(hide_password=True)}")
            self._connection = connection
        return self._connection

    def _run(self, sql: str, params: Params, handler: Callable[[CursorResult], T]) -> T:
        """Execute one statement and hand the result to handler.

        Mappings are bound by name through text(); other sequences are
        bound by position using the driver's own paramstyle.
        """
        if self.debug:
            log_query(sql, params)

        conn = self.connection()
        try:
            if params is None or isinstance(params, Mapping):
                result = conn.execute(text(sql), dict(params or {}))
            else:
                result = conn.exec_driver_sql(sql, tuple(params))
            value = handler(result)
        except Exception:
            if not self.in_transaction:
                conn.rollback()
            raise

        if not self.in_transaction:
            conn.commit()
        return value

    def query(self, sql: str, params: Params = None) -> List[Row]:
        """Run a row-returning statement and return every row as a dict."""
        return self._run(sql, params, lambda result: [dict(row) for row in result.mappings()])

    def query_one(self, sql: str, params: Params = None) -> Optional[Row]:
        """Run a row-returning statement and return its first row, or None."""
        def first(result: CursorResult) -> Optional[Row]:
            row = result.mappings().first()
            return dict(row) if row is not None else None

        return self._run(sql, params, first)

    def execute(self, sql: str, params: Params = None) -> int:
        """Run a statement and return the affected row count."""
        return self._run(sql, params, lambda result: result.rowcount)

    def insert(self, sql: str, params: Params = None) -> Any:
        """Run an INSERT and return the driver-reported last inserted id."""
        return self._run(sql, params, lambda result: result.lastrowid)

    def transaction(self, fn: Callable[['ConnectionManager'], T]) -> T:
        """
        Run fn inside a transaction.

        Commits when fn returns; on any exception rolls back and re-raises
        the original exception. A nested call joins the outer transaction.

        Args:
            fn: Callable receiving this manager

        Returns:
            Whatever fn returns
        """
        if self.in_transaction:
            return fn(self)

        conn = self.connection()
        transaction = conn.begin()
        self._transaction_depth += 1
        logger.debug("Transaction started")
        try:
            result = fn(self)
        except BaseException:
            logger.warning("⚠️ Transaction rolled back")
            transaction.rollback()
            raise
        else:
            transaction.commit()
            logger.debug("Transaction committed")
            return result
        finally:
            self._transaction_depth -= 1

    def table(self, name: str):
        """Start a QueryBuilder bound to this manager."""
        from sql.query import QueryBuilder

        return QueryBuilder(name, manager=self)

    def close(self) -> None:
        """Close the connection; dispose the engine if this manager created it."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._engine is not None and self._owns_engine:
            self._engine.dispose()
            self._engine = None


def verify_connection(manager: ConnectionManager) -> Tuple[bool, Optional[str]]:
    """
    Verify that the manager can reach its database.

    Returns:
        Tuple of (success: bool, message: str)

    Example:
        >>> success, message = verify_connection(manager)
    """
    try:
        manager.query_one("SELECT 1 AS ok")
    except (DatabaseConnectionError, SQLAlchemyError) as e:
        return False, f"Connection test failed: {e}"
    return True, "Connection OK"
