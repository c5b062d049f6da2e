"""Shared fixtures: stub privilege tools that record what they were asked to run."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from sudoshim.config import get_settings

_STUB = """#!/bin/sh
: > "$STUB_LOG"
for arg in "$@"; do
    printf '%s\\n' "$arg" >> "$STUB_LOG"
done
exit "${STUB_EXIT:-0}"
"""


def make_executable(path: Path, body: str = _STUB) -> Path:
    path.write_text(body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def read_log(log: Path) -> list[str] | None:
    """Arguments recorded by the stub, or ``None`` if it never ran."""
    if not log.exists():
        return None
    return log.read_text(encoding="utf-8").splitlines()


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def bindir(tmp_path: Path) -> Path:
    d = tmp_path / "bin"
    d.mkdir()
    return d


@pytest.fixture()
def stub_log(tmp_path: Path) -> Path:
    return tmp_path / "stub.log"


@pytest.fixture()
def stub_env(bindir: Path, stub_log: Path) -> dict[str, str]:
    """A minimal caller environment with stub run0 and doas on PATH."""
    make_executable(bindir / "run0")
    make_executable(bindir / "doas")
    return {
        "PATH": str(bindir),
        "HOME": os.environ.get("HOME", "/tmp"),
        "STUB_LOG": str(stub_log),
        "SUDOSHIM_EXEC_MODE": "spawn",
        "SUDOSHIM_TARGET": "run0",
    }


@pytest.fixture()
def make_stub():
    return make_executable


@pytest.fixture()
def recorded(stub_log: Path):
    """Callable returning the stub's recorded argv (``None`` if it never ran)."""
    return lambda: read_log(stub_log)
