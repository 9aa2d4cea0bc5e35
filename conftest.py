import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def silence_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def log_messages():
    """Warnings and above emitted through loguru during the test."""
    captured = []
    handler_id = logger.add(lambda msg: captured.append(msg.record['message']), level="WARNING")
    yield captured
    logger.remove(handler_id)
