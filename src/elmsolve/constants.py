"""Constants used in the project."""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    NO_SOLUTION = 3
    INVALID_INPUT = 4
    INTERNAL_ERROR = 5


class SolveMode(Enum):
    """Where package metadata is looked up.

    Args:
        Enum (string): Provider selection for the CLI.
    """

    OFFLINE = "offline"
    ONLINE = "online"
    FALLBACK = "fallback"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL = "https://package.elm-lang.org"
    ELM_VERSION_DIR = "0.19.1"
    PUBGRUB_DIR = "pubgrub"
    ELM_JSON_CACHE_DIR = "elm_json_cache"
    VERSIONS_CACHE_FILE = "versions_cache.json"
    ELM_JSON_FILE = "elm.json"
    ELM_HOME = None  # resolved lazily, see elm_home()
    ENV_ELM_HOME = "ELM_HOME"
    ENV_CONFIG = "ELMSOLVE_CONFIG"
    ENV_LOG_LEVEL = "ELMSOLVE_LOG_LEVEL"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300
    USER_AGENT = "elmsolve/0.1"


DEFAULT_CONFIG_LOCATIONS = (
    "elmsolve.yml",
    os.path.join("~", ".config", "elmsolve", "elmsolve.yml"),
)

# YAML key -> Constants attribute
_CONFIG_KEYS = {
    "registry_url": ("REGISTRY_URL", str),
    "request_timeout": ("REQUEST_TIMEOUT", int),
    "http_retry_max": ("HTTP_RETRY_MAX", int),
    "http_cache_ttl": ("HTTP_CACHE_TTL_SEC", int),
    "elm_home": ("ELM_HOME", str),
}


def _find_config_file(explicit: Optional[str] = None) -> Optional[Path]:
    """Return the first existing config file path, explicit path first."""
    candidates = []
    if explicit:
        candidates.append(explicit)
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        candidates.append(env_path)
    candidates.extend(DEFAULT_CONFIG_LOCATIONS)
    for candidate in candidates:
        path = Path(os.path.expanduser(candidate))
        if path.is_file():
            return path
    return None


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML configuration and apply known keys onto Constants.

    Returns the raw mapping (empty when no file is found). Unknown keys are
    ignored; malformed files are logged and ignored.
    """
    config_path = _find_config_file(path)
    if config_path is None:
        return {}

    import yaml  # pylint: disable=import-outside-toplevel

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to load config %s: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top-level value is not a mapping", config_path)
        return {}

    for key, (attr, cast) in _CONFIG_KEYS.items():
        if key in data and data[key] is not None:
            try:
                setattr(Constants, attr, cast(data[key]))
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid config value for %s: %r", key, data[key])
    logger.debug("Loaded configuration from %s", config_path)
    return data


def elm_home() -> Path:
    """Return the ELM_HOME directory.

    Precedence: configured Constants.ELM_HOME, then $ELM_HOME, then the
    platform default (~/.elm, or %APPDATA%/elm on Windows).
    """
    if Constants.ELM_HOME:
        return Path(os.path.expanduser(Constants.ELM_HOME))
    env_home = os.environ.get(Constants.ENV_ELM_HOME)
    if env_home:
        return Path(env_home)
    if os.name == "nt":
        app_data = os.environ.get("APPDATA")
        base = Path(app_data) if app_data else Path.home() / "AppData" / "Roaming"
        return base / "elm"
    return Path.home() / ".elm"
