"""Shared test fixtures for sheetwatch."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo logging configuration done by a test (e.g. via the CLI).

    The replacement sink resolves ``sys.stderr`` per message so it always
    writes to the stream pytest is currently capturing.
    """
    yield
    logger.remove()
    logger.add(lambda message: sys.stderr.write(message), level="DEBUG")
    logging.basicConfig(handlers=[], force=True)
