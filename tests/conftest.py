"""Shared fixtures."""

from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_logging():
    """setup_logging binds the current sys.stderr; drop its handler after each test."""
    yield
    logger = logging.getLogger("ndjsondelta")
    for handler in list(logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "NDJSONDELTA_LOG_LEVEL",
        "NDJSONDELTA_REMOTE_BASE_URL",
        "NDJSONDELTA_REMOTE_TOKEN",
        "NDJSONDELTA_REMOTE_TIMEOUT",
        "NDJSONDELTA_ENCODING",
    ):
        monkeypatch.delenv(name, raising=False)
