"""Pytest diagnostics and shared fixtures."""

from __future__ import annotations

import json
import os
import platform
import sys
from collections.abc import Iterator
from importlib import metadata
from pathlib import Path
from typing import Any

import pyarrow as pa
import pytest

from recordtable.config import INCLUDE_PRIVATE_ENV, VALIDATE_CELLS_ENV
from recordtable.fields import GLOBAL_FIELD_REGISTRY

_DIAG_DIR = Path("build/test-results")
_ENV_PATH = _DIAG_DIR / "diagnostics_env.json"
_VERSIONS_PATH = _DIAG_DIR / "diagnostics_versions.json"


def _env_subset(prefixes: tuple[str, ...]) -> dict[str, str]:
    return {key: value for key, value in os.environ.items() if key.startswith(prefixes)}


def _collect_env() -> dict[str, Any]:
    return {
        "python": sys.version,
        "executable": sys.executable,
        "platform": platform.platform(),
        "env": _env_subset(("PYTHON", "ARROW", "RECORDTABLE")),
        "pyarrow_version": pa.__version__,
    }


def _collect_versions() -> dict[str, str]:
    versions: dict[str, str] = {}
    for name in ("msgspec", "pyarrow", "pytest"):
        try:
            versions[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            continue
    return versions


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    try:
        path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    except OSError:
        return


def pytest_sessionstart(session: object) -> None:
    """Record interpreter and dependency versions for the session."""
    try:
        _DIAG_DIR.mkdir(parents=True, exist_ok=True)
    except OSError:
        return
    _write_json(_ENV_PATH, _collect_env())
    _write_json(_VERSIONS_PATH, _collect_versions())
    _ = session


@pytest.fixture(autouse=True)
def _isolate_conversion_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear conversion env overrides and restore the field registry."""
    monkeypatch.delenv(INCLUDE_PRIVATE_ENV, raising=False)
    monkeypatch.delenv(VALIDATE_CELLS_ENV, raising=False)
    snapshot = GLOBAL_FIELD_REGISTRY.snapshot()
    yield
    GLOBAL_FIELD_REGISTRY.restore(snapshot)
