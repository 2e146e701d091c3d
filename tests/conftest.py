from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable Tauri project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_winbundle_logger():
    """CLI runs detach the package logger from root; restore it for caplog."""
    yield
    logger = logging.getLogger("winbundle")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
