import logging

import pytest

from aodi import Injector
from aodi.constants import LOGGER


class ListLogHandler(logging.Handler):
    def __init__(self, sink: list[str]):
        super().__init__(level=logging.DEBUG)
        self.sink = sink

    def emit(self, record):
        self.sink.append(self.format(record))


@pytest.fixture
def aodi_log():
    """Messages logged by the ``aodi`` logger during the test, at DEBUG and above."""
    captured: list[str] = []
    handler = ListLogHandler(captured)
    previous = LOGGER.level
    LOGGER.addHandler(handler)
    LOGGER.setLevel(logging.DEBUG)
    yield captured
    LOGGER.removeHandler(handler)
    LOGGER.setLevel(previous)


@pytest.fixture
def injector() -> Injector:
    return Injector()
