"""Configuration loader for the Waystation session daemon

Each setting is resolved from, in order:
1. ``WAYSTATION_<NAME>`` in the environment
2. ``<NAME>`` in the environment
3. A ``.env`` file in the working directory, then ``~/.waystation/.env``
4. The hardcoded default
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, List, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "WAYSTATION_"
USER_ENV_FILE = Path.home() / ".waystation" / ".env"

_TRUE_VALUES = ("true", "1", "yes", "on")


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUE_VALUES


# bool is checked before int: it is an int subclass
_PARSERS: List[tuple] = [
    (bool, _parse_bool),
    (int, int),
    (float, float),
]


class ConfigLoader:
    """Resolves daemon settings from the environment and .env files"""

    def __init__(self, env_path: Optional[str] = None, prefix: str = ENV_PREFIX):
        """
        Args:
            env_path: Explicit .env file. When omitted, ``.env`` in the
                working directory and the per-user file are both read.
            prefix: Prefix checked before the bare variable name
        """
        self.env_files = [Path(env_path)] if env_path else [Path(".env"), USER_ENV_FILE]
        self.prefix = prefix
        self.loaded_files: List[Path] = []
        self._load_env_files()

    def _load_env_files(self):
        # load_dotenv never overrides, so the first file wins
        for path in self.env_files:
            if path.exists():
                load_dotenv(dotenv_path=path)
                self.loaded_files.append(path)
                logger.debug(f"Loaded settings from {path}")
        if not self.loaded_files:
            logger.debug("No .env file found, using environment variables and defaults only")

    def _lookup(self, env_var: str) -> Optional[str]:
        for name in (f"{self.prefix}{env_var}", env_var):
            value = os.getenv(name)
            if value is not None:
                logger.debug(f"Setting {env_var} taken from {name}")
                return value
        return None

    def get(self, env_var: str, default: Any) -> Any:
        """Resolve one setting

        The type of ``default`` decides how the raw string is parsed; a
        value that does not parse is reported and the default used instead.

        Args:
            env_var: Setting name without the prefix
            default: Value used when the setting is absent or invalid

        Returns:
            The parsed setting
        """
        raw = self._lookup(env_var)
        if raw is None:
            if isinstance(default, str) and default.startswith("~/"):
                return str(Path(default).expanduser())
            return default

        parser: Optional[Callable[[str], Any]] = next(
            (parse for kind, parse in _PARSERS if isinstance(default, kind)), None
        )
        if parser is None:
            return raw
        try:
            return parser(raw)
        except ValueError:
            logger.warning(f"Invalid value {raw!r} for {env_var}, using default: {default}")
            return default


_config_loader = None

def get_config_loader() -> ConfigLoader:
    """Get or create the global ConfigLoader instance"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader
