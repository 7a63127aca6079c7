"""
Shared pytest configuration and fixtures for all tests.

Key fixtures:
- sqlite_manager: ConnectionManager bound to a fresh in-memory SQLite database
- users_table: sqlite_manager with a populated `users` table (25 rows)
- recording_manager: RecordingManager that records statements instead of running them
"""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path to enable importing project modules
# This allows tests to import from 'core', 'sql', 'utils' without installation
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

ROLES = ('admin', 'editor', 'viewer')


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests - isolated function-level tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interactions")
    config.addinivalue_line("markers", "smoke: Smoke tests - basic functionality checks")
    config.addinivalue_line("markers", "edge_case: Edge case tests - boundary conditions")


class RecordingManager:
    """Stands in for ConnectionManager and records every statement.

    Results are scripted: query() returns `rows`, query_one() returns
    `row`, execute() returns `affected`, insert() returns `last_id`.
    """

    def __init__(self, rows=None, row=None, affected=0, last_id=1):
        self.calls = []
        self.rows = rows or []
        self.row = row
        self.affected = affected
        self.last_id = last_id
        self.debug = False
        self.closed = False

    def query(self, sql, params=None):
        self.calls.append(('query', sql, params))
        return list(self.rows)

    def query_one(self, sql, params=None):
        self.calls.append(('query_one', sql, params))
        return self.row

    def execute(self, sql, params=None):
        self.calls.append(('execute', sql, params))
        return self.affected

    def insert(self, sql, params=None):
        self.calls.append(('insert', sql, params))
        return self.last_id

    def transaction(self, fn):
        self.calls.append(('transaction', None, None))
        return fn(self)

    def close(self):
        self.closed = True


@pytest.fixture
def recording_manager():
    return RecordingManager()


@pytest.fixture
def sqlite_manager():
    """ConnectionManager on a private in-memory SQLite database."""
    from utils.database_utils import ConnectionManager

    manager = ConnectionManager('sqlite://')
    yield manager
    manager.close()


@pytest.fixture
def users_table(sqlite_manager):
    """25 users; role cycles through admin/editor/viewer, ages 20..44."""
    sqlite_manager.execute(
        "CREATE TABLE users ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "name TEXT NOT NULL, "
        "role TEXT NOT NULL, "
        "age INTEGER, "
        "stock INTEGER DEFAULT 0, "
        "deleted_at TEXT)"
    )
    for i in range(1, 26):
        sqlite_manager.execute(
            "INSERT INTO users (name, role, age, stock) VALUES (:name, :role, :age, :stock)",
            {'name': f'user{i}', 'role': ROLES[i % 3], 'age': 19 + i, 'stock': 10},
        )
    return sqlite_manager
