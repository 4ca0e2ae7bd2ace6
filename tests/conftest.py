"""Shared test fixtures for partial_tar_brotli tests."""

from __future__ import annotations

import random
from pathlib import Path
from typing import Callable

import pytest

MakeFile = Callable[..., str]


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty directory so relative inputs stay short."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PARTIAL_TAR_BROTLI_SETTINGS_FILE", raising=False)
    return tmp_path


@pytest.fixture
def make_file(workdir: Path) -> MakeFile:
    """Create an input file of incompressible bytes and return its relative path."""

    def _make(name: str, size: int, *, seed: int | None = None) -> str:
        path = workdir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        rng = random.Random(seed if seed is not None else name)
        path.write_bytes(rng.randbytes(size))
        return name

    return _make
