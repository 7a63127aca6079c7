"""
=============================================
Configuration management for the SQL builder.
=============================================

Loads all configuration from environment variables (.env file) and provides
a module-level Config instance for application-wide access.

The configuration system ensures:
- Single source of truth for connection settings
- Type conversion of ports and flags
- A full DATABASE_URL override for non-MySQL backends

Example:
    >>> from core.config import config
    >>>
    >>> # Database connection
    >>> engine_url = config.get_connection_string()
    >>>
    >>> # Access individual settings
    >>> print(f"Host: {config.db_host}, Port: {config.db_port}")
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

TRUTHY = {'1', 'true', 'yes', 'on'}


def _env_flag(name: str, default: str = '0') -> bool:
    return os.getenv(name, default).strip().lower() in TRUTHY


@dataclass
class DatabaseConfig:
    """Database configuration settings.

    Attributes:
        driver: SQLAlchemy driver name (e.g. 'mysql+pymysql', 'sqlite')
        host: Database server hostname or IP address
        port: Database server port number
        user: Database username
        password: Database password
        database: Database name
        charset: Connection character set
        url: Full connection URL; overrides every other field when set
    """

    driver: str
    host: str
    port: int
    user: str
    password: str
    database: str
    charset: str = 'utf8mb4'
    url: Optional[str] = None

    def get_connection_string(self) -> str:
        """Get the SQLAlchemy connection URL.

        Returns:
            DATABASE_URL verbatim if configured, otherwise a URL built
            from the individual fields
        """
        if self.url:
            return self.url
        query = {'charset': self.charset} if self.driver.startswith('mysql') else {}
        return URL.create(
            drivername=self.driver,
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.database,
            query=query
        ).render_as_string(hide_password=False)

    def get_connection_params(self) -> dict:
        """Get connection parameters as dictionary.

        Returns:
            Dictionary with keys: driver, host, port, user, password, database
        """
        return {
            'driver': self.driver,
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database
        }


class Config:
    """Centralized configuration manager.

    Attributes:
        db: DatabaseConfig instance with database connection settings
        debug: Emit compiled SQL and bindings for every statement
        log_level: Default logging level name

    Example:
        >>> config = Config()
        >>> conn_str = config.get_connection_string()
        >>> print(f"Connecting to {config.db_host}:{config.db_port}")
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.db = DatabaseConfig(
            driver=os.getenv('DB_DRIVER', 'mysql+pymysql'),
            host=os.getenv('DB_HOST', 'localhost'),
            port=int(os.getenv('DB_PORT', '3306')),
            user=os.getenv('DB_USER', 'root'),
            password=os.getenv('DB_PASSWORD', ''),
            database=os.getenv('DB_NAME', 'app'),
            charset=os.getenv('DB_CHARSET', 'utf8mb4'),
            url=os.getenv('DATABASE_URL') or None
        )
        self.debug = _env_flag('QUERY_DEBUG')
        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

    @property
    def db_host(self) -> str:
        """Get database server hostname."""
        return self.db.host

    @property
    def db_port(self) -> int:
        """Get database server port number."""
        return self.db.port

    @property
    def db_user(self) -> str:
        """Get database username."""
        return self.db.user

    @property
    def db_password(self) -> str:
        """Get database password."""
        return self.db.password

    @property
    def db_name(self) -> str:
        """Get database name."""
        return self.db.database

    def get_connection_string(self) -> str:
        """Get database connection string.

        Returns:
            SQLAlchemy-compatible connection URL

        Example:
            >>> config = Config()
            >>> url = config.get_connection_string()
        """
        return self.db.get_connection_string()

    def get_connection_params(self) -> dict:
        """Get database connection parameters."""
        return self.db.get_connection_params()


# Global configuration instance
config = Config()
