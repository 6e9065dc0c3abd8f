"""Mini README: Tests for environment-driven logging configuration."""

from __future__ import annotations

import logging

from fleetledger.logging_utils import configure_for_environment, get_logger, level_for_environment


def test_environment_levels() -> None:
    assert level_for_environment("development") == logging.DEBUG
    assert level_for_environment(" Production ") == logging.INFO
    assert level_for_environment("test") == logging.WARNING
    assert level_for_environment("staging") == logging.INFO


def test_reconfiguring_moves_level_without_new_handlers() -> None:
    root = logging.getLogger()
    get_logger(__name__)
    handlers = list(root.handlers)
    original = root.level
    try:
        assert configure_for_environment("development") == logging.DEBUG
        assert root.level == logging.DEBUG
        configure_for_environment("test")
        assert root.level == logging.WARNING
        assert root.handlers == handlers
    finally:
        root.setLevel(original)
