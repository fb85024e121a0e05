"""
Splicer User Configuration

Hierarchical config system with global defaults + local overrides:
- Global: ~/.splicer/config.json (cross-project settings)
- Local: .splicer/config.json (project-specific overrides)

Config structure:
{
  "inject": {
    "based": "1-based",          // or "0-based"
    "strict": false,
    "arrayBeforeAfter": "array-means-multiline",
    "maxWorkers": 1
  },
  "expectError": {
    "comment": "// @ts-expect-error TODO: fix ts"
  }
}
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from splicer.config import EXPECT_ERROR_COMMENT, INJECTION_CONFIG
from splicer.exceptions import ConfigError
from splicer.logging_config import logger
from splicer.paths import SplicerPaths
from splicer.schemas import InjectionOptions


DEFAULT_CONFIG = {
    "inject": dict(INJECTION_CONFIG),
    "expectError": {
        "comment": EXPECT_ERROR_COMMENT,
    },
}


class UserConfig:
    """
    Manages hierarchical user configuration.

    Load order (with override):
    1. Default config (hardcoded)
    2. Global config (~/.splicer/config.json)
    3. Local config (.splicer/config.json)
    """

    def __init__(self, project_root: Optional[Path] = None, home: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            project_root: Project root directory (defaults to CWD)
            home: Directory holding the global .splicer folder (defaults to ~)
        """
        paths = SplicerPaths(project_root, home)
        self.project_root = paths.project_root
        self.global_config_path = paths.global_config
        self.local_config_path = paths.local_config

        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration with hierarchical override.

        Unreadable files are logged and skipped.
        """
        config = copy.deepcopy(DEFAULT_CONFIG)

        for label, path in (("global", self.global_config_path), ("local", self.local_config_path)):
            if not path.exists():
                continue
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    config = self._deep_merge(config, json.load(f))
                logger.debug(f"Loaded {label} config from {path}")
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load {label} config: {e}")

        return config

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """
        Deep merge two dictionaries, with override taking precedence.
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a config value by dot-separated key.

        Examples:
            config.get("inject.based")  # "1-based"
            config.get("expectError.comment")
        """
        value = self._config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def injection_options(self, **overrides: Any) -> InjectionOptions:
        """
        The "inject" section as validated options.

        Overrides whose value is None are ignored.

        Raises:
            ConfigError: a value is not valid for its option
        """
        try:
            # Dump to field names so snake_case overrides win over camelCase file keys
            section = InjectionOptions.model_validate(self.get("inject", {})).model_dump()
            section.update({k: v for k, v in overrides.items() if v is not None})
            return InjectionOptions.model_validate(section)
        except ValidationError as e:
            raise ConfigError(f"Invalid injection options: {e}") from e

    def set_local(self, key: str, value: Any) -> bool:
        """
        Set a local config value and save to disk.

        Returns:
            True if successful, False otherwise
        """
        config_path = self.local_config_path

        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    config = json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load config from {config_path}: {e}")
                return False
        else:
            config = {}

        keys = key.split(".")
        current = config
        for k in keys[:-1]:
            current = current.setdefault(k, {})
        current[keys[-1]] = value

        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, 'w', encoding='utf-8') as f:
                json.dump(config, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save config to {config_path}: {e}")
            return False

        self._config = self._load_config()
        logger.info(f"Saved local config: {key}={value}")
        return True

    def get_all(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config)


# Global singleton
_config: Optional[UserConfig] = None


def get_user_config(project_root: Optional[Path] = None) -> UserConfig:
    """
    Get the user configuration singleton.

    Args:
        project_root: Optional project root override
    """
    global _config
    if project_root is not None:
        return UserConfig(project_root)
    if _config is None:
        _config = UserConfig()
    return _config


def reset_user_config() -> None:
    """Reset the global config singleton (for testing)."""
    global _config
    _config = None
