"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for clisynth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.clisynth/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~clisynth.models.GlobalConfig`
  JSON file storing default render options.
* **Precedence resolution** -- :func:`resolve_render_options` merges CLI
  flags, environment variables, project-local config, and global config into
  the final :class:`~clisynth.models.RenderOptions`.

All file writes, including generated modules, use an atomic
temp-file-then-rename strategy (:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from clisynth.exceptions import ConfigError
from clisynth.generator.render import merge_render_options
from clisynth.models import GlobalConfig, RenderOptions

_APP_NAME = "clisynth"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "clisynth.json"

ENV_OVERRIDES: dict[str, str] = {
    "CLISYNTH_LIB": "lib",
    "CLISYNTH_FUNCTION_NAME": "function_name",
}
"""Environment variables that override string render options."""


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
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/clisynth/`` (default ``~/.config/clisynth/``).
    On macOS/Windows: ``~/.clisynth/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/clisynth/`` (default ``~/.local/share/clisynth/``).
    On macOS/Windows: ``~/.clisynth/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def write_module(path: Path, source: str) -> None:
    """Atomically write generated module *source* to *path*."""
    _atomic_write(path, source)


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~clisynth.models.GlobalConfig`, or a
        default instance if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./clisynth.json``.

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or is not
            an object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Project config at {path} must be a JSON object")
    return data


# --- Precedence resolution ---


def resolve_render_options(
    cli_overrides: Optional[dict[str, Any]] = None,
) -> RenderOptions:
    """Resolve render options with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (*cli_overrides*, ``None`` values ignored)
        2. Environment variables (``CLISYNTH_LIB``, ``CLISYNTH_FUNCTION_NAME``)
        3. Project config (``./clisynth.json``, ``render`` object)
        4. User config (``~/.config/clisynth/config.json``)
        5. :data:`~clisynth.generator.render.DEFAULT_RENDER_OPTIONS`

    Raises:
        ConfigError: If any layer names an unknown option or an invalid value.
    """
    overrides: dict[str, Any] = dict(load_global_config().render)

    project = load_project_config()
    if project is not None:
        project_render = project.get("render") or {}
        if not isinstance(project_render, dict):
            raise ConfigError("Project config 'render' must be an object")
        overrides.update(project_render)

    for env_var, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            overrides[key] = value

    overrides.update({k: v for k, v in (cli_overrides or {}).items() if v is not None})

    try:
        return merge_render_options(overrides)
    except ValidationError as exc:
        raise ConfigError(f"Invalid render options: {exc}") from exc
