"""
=====================================
Pytest suite for sql/db.py (facade)
=====================================

How to Execute:
---------------
All tests:          pytest tests/tests_sql/test_db.py -v
"""

from unittest.mock import patch

import pytest

from sql import db
from sql.query import QueryBuilder


@pytest.fixture
def installed(recording_manager):
    """Install the recording manager as the default, restore afterwards."""
    db.set_manager(recording_manager)
    yield recording_manager
    db._manager = None


@pytest.mark.unit
def test_table_is_bound_to_default_manager(installed):
    query = db.table('users u')

    assert isinstance(query, QueryBuilder)
    assert query.alias == 'u'
    assert query._connection_manager() is installed


@pytest.mark.unit
def test_raw_delegators(installed):
    installed.rows = [{'id': 1}]
    installed.row = {'id': 1}
    installed.affected = 3

    assert db.select("SELECT * FROM users WHERE id = ?", [1]) == [{'id': 1}]
    assert db.select_one("SELECT * FROM users WHERE id = :id", {'id': 1}) == {'id': 1}
    assert db.statement("DELETE FROM users") == 3
    assert [call[0] for call in installed.calls] == ['query', 'query_one', 'execute']
    assert installed.calls[0][2] == [1]


@pytest.mark.unit
def test_transaction_delegates(installed):
    assert db.transaction(lambda manager: manager is installed) is True


@pytest.mark.unit
def test_set_debug_toggles_default_manager(installed):
    db.set_debug(True)

    assert installed.debug is True


@pytest.mark.unit
def test_reset_manager_closes_it(installed):
    db.reset_manager()

    assert installed.closed is True
    assert db._manager is None


@pytest.mark.unit
def test_default_manager_built_lazily_from_config():
    db._manager = None
    sentinel = object()
    try:
        with patch('sql.db.ConnectionManager.from_config', return_value=sentinel) as from_config:
            assert db.get_manager() is sentinel
            assert db.get_manager() is sentinel
        from_config.assert_called_once_with()
    finally:
        db._manager = None
