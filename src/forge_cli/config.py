"""Configuration resolution and the XDG data directory.

forge_cli never writes configuration. The effective
:class:`~forge_cli.models.CliConfig` of one invocation is merged from, in
order of precedence:

1. CLI flags (``--url``, ``--spec``, ``--spec-path``, ``--timeout``)
2. Environment variables (``FORGE_API_URL``, falling back to ``API_URL``;
   ``FORGE_API_SPEC``; ``FORGE_API_TIMEOUT``)
3. Project config (``./forge-cli.json``)
4. Defaults

The data directory holds crash logs only. See :func:`get_data_dir`.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from forge_cli.exceptions import ConfigError
from forge_cli.models import CliConfig

_APP_NAME = "forge-cli"
_PROJECT_CONFIG_FILENAME = "forge-cli.json"

ENV_URL = "FORGE_API_URL"
ENV_URL_FALLBACK = "API_URL"
ENV_SPEC = "FORGE_API_SPEC"
ENV_TIMEOUT = "FORGE_API_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/forge-cli/`` (default ``~/.local/share/forge-cli/``).
    On macOS/Windows: ``~/.forge-cli/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load ``./forge-cli.json`` as a dict, or ``None`` if there is none.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_spec: Optional[str] = None,
    cli_spec_path: Optional[str] = None,
    cli_timeout: Optional[float] = None,
) -> CliConfig:
    """Merge CLI flags, environment, project config, and defaults.

    Raises:
        ConfigError: If the project config or an environment value is invalid.
    """
    data: dict[str, Any] = load_project_config() or {}
    request: dict[str, Any] = dict(data.get("request") or {})

    env_url = os.environ.get(ENV_URL) or os.environ.get(ENV_URL_FALLBACK)
    if env_url:
        data["base_url"] = env_url
    env_spec = os.environ.get(ENV_SPEC)
    if env_spec:
        data["spec"] = env_spec
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        try:
            request["timeout"] = float(env_timeout)
        except ValueError as exc:
            raise ConfigError(
                f"{ENV_TIMEOUT} must be a number of seconds, got '{env_timeout}'"
            ) from exc

    if cli_base_url is not None:
        data["base_url"] = cli_base_url
    if cli_spec is not None:
        data["spec"] = cli_spec
    if cli_spec_path is not None:
        data["spec_path"] = cli_spec_path
    if cli_timeout is not None:
        request["timeout"] = cli_timeout

    data["request"] = request
    try:
        return CliConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
