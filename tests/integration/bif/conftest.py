"""Fixtures for BIF integration tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from bif_writer import write_bif as _write_bif

BifWriter = Callable[..., Path]


@pytest.fixture
def write_bif(tmp_path: Path) -> BifWriter:
    """Return a function writing a BIF under tmp_path and returning its path."""

    def write(name: str = "slide.bif", **kwargs: Any) -> Path:
        return _write_bif(tmp_path / name, **kwargs)

    return write
