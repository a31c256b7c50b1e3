"""Shared test fixtures for oatui.

Provides raw and normalised fixture documents and isolated config
environments. These fixtures are discovered by pytest and available to all
test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from oatui.models import DocumentModel
from oatui.output import reset_output
from oatui.parser import build_model


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict[str, Any]:
    """Parse a fixture document by file name."""
    text = (FIXTURES_DIR / name).read_text(encoding="utf-8")
    if name.endswith(".json"):
        return json.loads(text)
    return yaml.safe_load(text)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def users_raw() -> dict[str, Any]:
    """Raw users document: GET /users, POST /users, GET /users/{id}."""
    return load_fixture("users.yaml")


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Raw petstore document with composites and component references."""
    return load_fixture("petstore.json")


@pytest.fixture
def tree_raw() -> dict[str, Any]:
    """Raw document whose Node schema contains an array of Node."""
    return load_fixture("tree.yaml")


# ---------------------------------------------------------------------------
# Normalised models
# ---------------------------------------------------------------------------


@pytest.fixture
def users_model(users_raw: dict[str, Any]) -> DocumentModel:
    return build_model(users_raw)


@pytest.fixture
def petstore_model(petstore_raw: dict[str, Any]) -> DocumentModel:
    return build_model(petstore_raw)


@pytest.fixture
def tree_model(tree_raw: dict[str, Any]) -> DocumentModel:
    return build_model(tree_raw)


@pytest.fixture
def empty_model() -> DocumentModel:
    """A valid document without any endpoints."""
    return build_model(
        {"openapi": "3.0.3", "info": {"title": "Empty", "version": "0.0.1"}, "paths": {}}
    )


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config, clears all OATUI_* environment
    variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("oatui.config._is_xdg_platform", lambda: True)
    for var in ["OATUI_LIST_WIDTH", "OATUI_NO_COLOR", "NO_COLOR"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
