"""Gateway configuration: one YAML file plus an optional paired env file.

``${VAR}`` and ``$VAR`` references in string values are expanded from the
env file first and the process environment second.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

from .core.exceptions import ConfigurationError

logger = logging.getLogger("msgbridge")

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = "configs/config_default.yaml"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

CONFIG_PATH_ENV = "MSGBRIDGE_CONFIG"
HOST_ENV = "MSGBRIDGE_HOST"
PORT_ENV = "MSGBRIDGE_PORT"

_PLACEHOLDER = re.compile(r"\$\{(?P<braced>[^}]+)\}|\$(?P<bare>[A-Za-z_][A-Za-z0-9_]*)")


def _project_path(path: str) -> Path:
    candidate = Path(path)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_env_path(config_path: Path, env_path: Optional[str] = None) -> Path:
    """Pick the env file that belongs to ``config_path``.

    ``config_<name>.yaml`` pairs with ``.env_<name>`` in the same directory,
    anything else with a plain ``.env``. An explicit ``env_path`` wins.
    """
    if env_path:
        return _project_path(env_path)
    name = config_path.stem
    if name.startswith("config_"):
        return config_path.with_name(".env_" + name[len("config_"):])
    return config_path.with_name(".env")


class _EnvExpander:
    """Expands placeholders in nested config values."""

    def __init__(self, overrides: Mapping[str, str]) -> None:
        self._overrides = overrides

    def lookup(self, name: str) -> Optional[str]:
        if name in self._overrides:
            return self._overrides[name]
        return os.environ.get(name)

    def _replace(self, match: "re.Match[str]") -> str:
        name = match.group("braced") or match.group("bare")
        value = self.lookup(name)
        if value is None:
            logger.warning(f"Environment variable '{name}' is not set; keeping {match.group(0)} as-is")
            return match.group(0)
        return value

    def expand(self, value: Any) -> Any:
        if isinstance(value, str):
            return _PLACEHOLDER.sub(self._replace, value)
        if isinstance(value, dict):
            return {key: self.expand(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self.expand(item) for item in value]
        return value


def load_config(
    path: Optional[str] = None,
    env_path: Optional[str] = None,
    substitute_env: bool = True,
) -> dict:
    """Read the gateway config.

    Args:
        path: Config file; ``$MSGBRIDGE_CONFIG`` or the bundled default when omitted.
            Relative paths are taken from the project root.
        env_path: Env file to expand placeholders from, instead of the paired one.
        substitute_env: Expand ``${VAR}`` / ``$VAR`` placeholders.

    Raises:
        ConfigurationError: The file is missing or its top level is not a mapping.
    """
    config_path = _project_path(path or os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    if not config_path.is_file():
        logger.error(f"Config file not found: {config_path}")
        raise ConfigurationError(f"Config file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")
    with config_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {config_path}")

    if not substitute_env:
        return data

    env_file = resolve_env_path(config_path, env_path)
    overrides: dict[str, str] = {}
    if env_file.is_file():
        logger.info(f"Reading placeholder values from {env_file}")
        overrides = {key: value for key, value in dotenv_values(env_file).items() if value is not None}

    return _EnvExpander(overrides).expand(data)


def get_server_settings(config: Mapping[str, Any]) -> tuple[str, int]:
    """Bind address from the ``server`` section, overridable from the environment."""
    server = config.get("server") or {}
    host = os.getenv(HOST_ENV) or str(server.get("host") or DEFAULT_HOST)

    port_value = os.getenv(PORT_ENV) or server.get("port") or DEFAULT_PORT
    try:
        return host, int(port_value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid port {port_value!r}; using {DEFAULT_PORT}")
        return host, DEFAULT_PORT


def get_log_level(config: Mapping[str, Any]) -> str:
    level = (config.get("logging") or {}).get("level") or "INFO"
    return str(level).upper()
