"""Shared test fixtures for linty."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture()
def write_config() -> Callable[..., Path]:
    """Return a helper that writes ``.lintyconfig.json`` with the given rules."""

    def _write(project: Path, *rules: dict[str, object]) -> Path:
        path = project / ".lintyconfig.json"
        path.write_text(json.dumps({"rules": list(rules)}), encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create an empty project directory for scanning."""
    project = tmp_path / "proj"
    project.mkdir()
    return project
