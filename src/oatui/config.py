"""Read-only configuration with XDG paths and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.oatui/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **User config** -- an optional JSON file deserialised into a
  :class:`~oatui.models.ViewerConfig`.
* **Project config** -- an optional ``./oatui.json`` with the same keys.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project config and user config.

oatui never writes configuration. The data directory only receives crash
logs.
"""

from __future__ import annotations

import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from oatui.exceptions import ConfigError
from oatui.models import ViewerConfig

logger = logging.getLogger(__name__)

_APP_NAME = "oatui"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "oatui.json"

MIN_LIST_WIDTH = 20
MAX_LIST_WIDTH = 80
OUTPUT_FORMATS = frozenset({"auto", "json", "plain", "rich"})

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory. It is not created.

    On Linux/BSD: ``$XDG_CONFIG_HOME/oatui/`` (default ``~/.config/oatui/``).
    On macOS/Windows: ``~/.oatui/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return _fallback_base_dir()


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/oatui/`` (default ``~/.local/share/oatui/``).
    On macOS/Windows: ``~/.oatui/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Config files ---


def _read_json(path: Path, kind: str) -> Optional[dict[str, Any]]:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid {kind} config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {kind} config at {path}: expected a JSON object")
    return data


def load_global_config() -> ViewerConfig:
    """Load the user configuration from the config directory.

    Returns:
        The deserialised :class:`~oatui.models.ViewerConfig`, or the defaults
        when the file does not exist.

    Raises:
        ConfigError: The file exists but contains invalid JSON or values.
    """
    path = get_config_dir() / _CONFIG_FILENAME
    data = _read_json(path, "user")
    if data is None:
        return ViewerConfig()
    try:
        return ViewerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid user config at {path}: {exc}") from exc


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./oatui.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: The file exists but is not a JSON object.
    """
    return _read_json(Path.cwd() / _PROJECT_CONFIG_FILENAME, "project")


# --- Precedence resolution ---


def resolve_config(
    cli_list_width: Optional[int] = None,
    cli_format: Optional[str] = None,
    cli_no_color: Optional[bool] = None,
) -> ViewerConfig:
    """Resolve the effective settings.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``OATUI_LIST_WIDTH``, ``OATUI_NO_COLOR``)
        3. Project config (``./oatui.json``)
        4. User config (``~/.config/oatui/config.json``)
        5. Defaults

    ``list_width`` is clamped to the 20-80 percent range.

    Raises:
        ConfigError: A config file or environment variable is invalid.
    """
    data = load_global_config().model_dump()

    project = load_project_config()
    if project is not None:
        if "list_width" in project:
            data["list_width"] = project["list_width"]
        if isinstance(project.get("output"), dict):
            data["output"].update(project["output"])

    env_width = os.environ.get("OATUI_LIST_WIDTH")
    if env_width:
        try:
            data["list_width"] = int(env_width)
        except ValueError:
            raise ConfigError(
                f"OATUI_LIST_WIDTH must be an integer, got {env_width!r}"
            ) from None
    env_no_color = os.environ.get("OATUI_NO_COLOR")
    if env_no_color is not None:
        data["output"]["no_color"] = _parse_bool("OATUI_NO_COLOR", env_no_color)

    if cli_list_width is not None:
        data["list_width"] = cli_list_width
    if cli_format is not None:
        data["output"]["format"] = cli_format
    if cli_no_color:
        data["output"]["no_color"] = True

    try:
        config = ViewerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    if config.output.format not in OUTPUT_FORMATS:
        raise ConfigError(
            f"Unknown output format {config.output.format!r}; "
            f"expected one of: {', '.join(sorted(OUTPUT_FORMATS))}"
        )

    clamped = clamp_list_width(config.list_width)
    if clamped != config.list_width:
        logger.debug("list_width %d clamped to %d", config.list_width, clamped)
        config = config.model_copy(update={"list_width": clamped})
    return config


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def clamp_list_width(value: int) -> int:
    """Clamp a list pane width percentage to the supported range."""
    return max(MIN_LIST_WIDTH, min(MAX_LIST_WIDTH, value))
