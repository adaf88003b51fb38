"""Shared fixtures."""

from __future__ import annotations

import pytest
from loguru import logger


@pytest.fixture
def log_messages():
    """Collect provider_wire log records emitted during a test."""
    messages: list[str] = []
    logger.enable("provider_wire")
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
    logger.disable("provider_wire")
