"""
Tests for logging setup and the read-write lock.
"""

import logging
import threading
import time

import pytest

from src.sequence_annotations.utils.locking import NullLock, ReadWriteLock
from src.sequence_annotations.utils.logging import (
    ROOT_LOGGER_NAME,
    get_logger,
    setup_logging,
)


@pytest.fixture
def restore_logging():
    root = logging.getLogger(ROOT_LOGGER_NAME)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if not isinstance(handler, logging.NullHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


# ============================================================================
# Tests: Logging
# ============================================================================

class TestLogging:
    """Tests for the package logger hierarchy."""

    def test_root_name_is_package(self):
        assert ROOT_LOGGER_NAME.endswith('sequence_annotations')

    def test_get_logger_nests_names(self):
        assert get_logger('core.graph').name == f'{ROOT_LOGGER_NAME}.core.graph'
        assert get_logger().name == ROOT_LOGGER_NAME

    def test_module_loggers_in_hierarchy(self):
        from src.sequence_annotations.core import graph
        assert graph.logger.name.startswith(ROOT_LOGGER_NAME + '.')

    def test_setup_logging_level(self, restore_logging):
        logger = setup_logging(level='WARNING')
        assert logger.level == logging.WARNING
        assert setup_logging(debug=True).level == logging.DEBUG

    def test_setup_logging_replaces_handlers(self, restore_logging):
        setup_logging()
        setup_logging()
        stream_handlers = [
            h for h in restore_logging.handlers
            if type(h) is logging.StreamHandler
        ]
        assert len(stream_handlers) == 1

    def test_log_file(self, restore_logging, tmp_path):
        log_file = tmp_path / 'logs' / 'annotations.log'
        setup_logging(level='INFO', log_file=str(log_file))
        get_logger('codec').info('hello')
        for handler in restore_logging.handlers:
            handler.flush()
        assert 'hello' in log_file.read_text()


# ============================================================================
# Tests: Locking
# ============================================================================

class TestReadWriteLock:
    """Tests for ReadWriteLock."""

    def test_readers_share(self):
        lock = ReadWriteLock()
        with lock.read():
            acquired = threading.Event()

            def reader():
                with lock.read():
                    acquired.set()

            t = threading.Thread(target=reader)
            t.start()
            assert acquired.wait(timeout=2)
            t.join()

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        events = []

        def reader():
            with lock.read():
                events.append('read')

        with lock.write():
            t = threading.Thread(target=reader)
            t.start()
            time.sleep(0.05)
            events.append('write done')
        t.join()

        assert events == ['write done', 'read']

    def test_release_on_exception(self):
        lock = ReadWriteLock()
        with pytest.raises(RuntimeError):
            with lock.write():
                raise RuntimeError('boom')
        with lock.write():
            pass

    def test_null_lock(self):
        lock = NullLock()
        with lock.read():
            with lock.write():
                pass
