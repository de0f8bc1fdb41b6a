"""
Configuration: loads settings from .thinker.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

import logging
import os

import yaml

from .errors import InvalidInputError

logger = logging.getLogger(__name__)


_DEFAULTS = {
    "target": "",
    "backup_suffix": ".backup",
    "grammars": "javascript,typescript",
    "content_window": 500,
    "log_dir": "",
    "theme": "",
    "color": "",
    "content_color": "",
}

# Config file search locations
_CONFIG_FILENAMES = [".thinker.yaml", ".thinker.yml"]


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Find the config file. Checks explicit path, CWD, then user home."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        raise InvalidInputError(f"Config file not found: {explicit_path}")

    # Search CWD first, then home directory
    search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}


def _split_names(value) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        items = str(value).split(",")
    return tuple(item.strip() for item in items if item.strip())


class Config:
    """Application configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables
    3. .thinker.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            raw = env_val if env_val is not None else yd.get(yaml_key)
            if raw is None:
                return default
            try:
                return cast(raw)
            except (TypeError, ValueError) as exc:
                raise InvalidInputError(
                    f"Invalid value for {yaml_key}: {raw!r}") from exc

        self.TARGET = _get("THINKER_TARGET", "target", _DEFAULTS["target"])
        self.BACKUP_SUFFIX = _get("THINKER_BACKUP_SUFFIX", "backup_suffix",
                                  _DEFAULTS["backup_suffix"])
        self.GRAMMARS = _get("THINKER_GRAMMARS", "grammars",
                             _split_names(_DEFAULTS["grammars"]), cast=_split_names)
        self.CONTENT_WINDOW = _get("THINKER_CONTENT_WINDOW", "content_window",
                                   _DEFAULTS["content_window"], cast=int)

        # Debug log output directory (empty disables the file log)
        self.LOG_DIR = _get("THINKER_LOG_DIR", "log_dir", _DEFAULTS["log_dir"])

        # Default colours for the CLI flags
        self.THEME = _get("THINKER_THEME", "theme", _DEFAULTS["theme"])
        self.COLOR = _get("THINKER_COLOR", "color", _DEFAULTS["color"])
        self.CONTENT_COLOR = _get("THINKER_CONTENT_COLOR", "content_color",
                                  _DEFAULTS["content_color"])

        if not self.BACKUP_SUFFIX:
            raise InvalidInputError("backup_suffix must not be empty")
        if not self.GRAMMARS:
            raise InvalidInputError("At least one grammar must be configured")
        if self.CONTENT_WINDOW <= 0:
            raise InvalidInputError("content_window must be positive")

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        if path:
            logger.debug("Loaded config from %s", path)
        return cls(yaml_data)
