"""Shared test fixtures and utilities.

This module provides common helpers, clients and settings to simplify
testing across the assistant test suite.
"""

from __future__ import annotations

import io
import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager, redirect_stdout
from pathlib import Path
from typing import Optional, Sequence

from core.cache import QueryCache
from workiq_assistant.client import WorkIQClient
from workiq_assistant.config import WorkIQSettings

REPO_ROOT = Path(__file__).resolve().parents[1]


# -----------------------------------------------------------------------------
# Path helpers
# -----------------------------------------------------------------------------


def repo_root() -> Path:
    return REPO_ROOT


def bin_path(name: str) -> Path:
    return REPO_ROOT / "bin" / name


def run(cmd: Sequence[str], cwd: Optional[str] = None, env: Optional[dict] = None):
    return subprocess.run(cmd, cwd=cwd, env=env, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)  # noqa: S603


# -----------------------------------------------------------------------------
# YAML config helpers
# -----------------------------------------------------------------------------


def write_yaml(data: dict, dir: Optional[str] = None, filename: str = "config.yaml") -> str:
    """Write a dict to a temporary YAML file, return the path."""
    import yaml

    td = dir or tempfile.mkdtemp()
    p = os.path.join(td, filename)
    with open(p, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, sort_keys=False)
    return p


def write_text(path: str, text: str) -> str:
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(text)
    return path


# -----------------------------------------------------------------------------
# Output capture helpers
# -----------------------------------------------------------------------------


@contextmanager
def capture_stdout():
    """Context manager that captures stdout and yields a StringIO buffer."""
    buf = io.StringIO()
    with redirect_stdout(buf):
        yield buf


# -----------------------------------------------------------------------------
# Client helpers
# -----------------------------------------------------------------------------


class TempDirMixin:
    """unittest mixin giving each test a scratch directory at ``self.tmpdir``."""

    def setUp(self):
        super().setUp()
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)
        super().tearDown()


class Clock:
    """Settable replacement for time.time."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_client(runner, tmpdir: str, clock=None, **settings) -> WorkIQClient:
    """WorkIQClient over ``runner`` with its cache and output under ``tmpdir``."""
    settings.setdefault("cache_dir", os.path.join(tmpdir, "cache"))
    settings.setdefault("output_dir", os.path.join(tmpdir, "output"))
    cfg = WorkIQSettings(**settings)
    cache = QueryCache(cfg.cache_dir, ttl=cfg.cache_ttl, clock=clock) if clock else None
    return WorkIQClient(cfg, runner=runner, cache=cache)
