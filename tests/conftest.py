from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.caption_builder import CaptionTreeBuilder


@pytest.fixture
def caption_tree(tmp_path: Path) -> CaptionTreeBuilder:
    """Provide a caption tree builder rooted at the pytest tmp_path."""
    return CaptionTreeBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_ttmlcheck_logger() -> Iterator[None]:
    """Drop handlers the CLI attaches so they never outlive capsys streams."""
    yield
    logger = logging.getLogger("ttmlcheck")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
