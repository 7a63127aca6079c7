"""
=====================================
Pytest suite for core/logger.py
=====================================

How to Execute:
---------------
All tests:          pytest tests/tests_core/test_logger.py -v
"""

import logging
from datetime import date

import pytest

from core.logger import QUERY_LOGGER_NAME, ColoredFormatter, get_logger, log_query, setup_logging


@pytest.mark.unit
def test_log_query_emits_sql_and_bindings(caplog):
    caplog.set_level(logging.INFO, logger='sql.debug')

    log_query("SELECT * FROM `users` WHERE `id` = :w1", {'w1': 5})

    assert "SQL: SELECT * FROM `users` WHERE `id` = :w1" in caplog.text
    assert '"w1": 5' in caplog.text


@pytest.mark.unit
def test_log_query_renders_non_json_values(caplog):
    caplog.set_level(logging.INFO, logger='sql.debug')

    log_query("SELECT ?", [date(2024, 1, 2)])

    assert '"2024-01-02"' in caplog.text


@pytest.mark.unit
def test_log_query_custom_logger(caplog):
    caplog.set_level(logging.INFO, logger='custom')

    log_query("SELECT 1", None, logger=logging.getLogger('custom'))

    assert [record.name for record in caplog.records] == ['custom', 'custom']
    assert 'Params: null' in caplog.text


@pytest.mark.unit
def test_log_query_prints_without_logging_setup(capsys):
    logger = logging.getLogger(QUERY_LOGGER_NAME)
    saved_handlers, saved_level, saved_propagate = logger.handlers[:], logger.level, logger.propagate
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = False
    try:
        log_query("SELECT 1", None)
        added = logger.handlers[:]
        level = logger.level
    finally:
        logger.handlers[:] = saved_handlers
        logger.setLevel(saved_level)
        logger.propagate = saved_propagate

    assert len(added) == 1
    assert level == logging.INFO
    assert 'SQL: SELECT 1' in capsys.readouterr().out


@pytest.mark.unit
def test_get_logger_sets_level():
    logger = get_logger('tests.level', level='warning')

    assert logger.level == logging.WARNING


@pytest.mark.unit
def test_setup_logging_writes_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging(log_level='DEBUG', log_file='queries.log', log_dir=str(tmp_path),
                      console_output=False)
        logging.getLogger('tests.file').debug('hello file')
        for handler in root.handlers:
            handler.flush()
            handler.close()
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    assert 'hello file' in (tmp_path / 'queries.log').read_text(encoding='utf-8')


@pytest.mark.unit
def test_colored_formatter_restores_levelname():
    formatter = ColoredFormatter('%(emoji)s %(levelname)s %(message)s')
    record = logging.LogRecord('x', logging.ERROR, __file__, 1, 'bad', None, None)

    output = formatter.format(record)

    assert '\033[31mERROR\033[0m' in output
    assert '❌' in output
    assert record.levelname == 'ERROR'
