import os
import logging

import pytest

# The widgets never need a real display in tests
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def session(qtbot):
    from process_session import ProcessSession
    session = ProcessSession()
    yield session
    session.stop()


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)
