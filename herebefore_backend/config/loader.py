"""
Configuration loader
Supports loading configuration from TOML and YAML files, with environment variable override support
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import toml
import yaml
import logging

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "HEREBEFORE_CONFIG"


class ConfigLoader:
    """Configuration loader class"""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = str(config_file or self._get_default_config_file())
        self._config: Dict[str, Any] = {}

    def _get_default_config_file(self) -> str:
        """Get default configuration file path

        Strategy:
        1. HEREBEFORE_CONFIG environment variable, if set
        2. ~/.config/herebefore/config.toml (standard user configuration directory)
        3. If the file doesn't exist, it is created from the default template during load()
        """
        env_file = os.getenv(CONFIG_ENV_VAR)
        if env_file:
            logger.info(f"Using configuration file from {CONFIG_ENV_VAR}: {env_file}")
            return env_file

        user_config_file = Path.home() / ".config" / "herebefore" / "config.toml"
        logger.info(f"Using user configuration directory: {user_config_file}")
        return str(user_config_file)

    def load(self) -> Dict[str, Any]:
        """Load configuration, create default configuration if it doesn't exist"""
        config_path = Path(self.config_file)

        if not config_path.exists():
            logger.info(f"Configuration file doesn't exist: {self.config_file}")
            self._create_default_config(config_path)

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                config_content = f.read()

            config_content = self._replace_env_vars(config_content)

            if self.config_file.endswith((".yaml", ".yml")):
                self._config = yaml.safe_load(config_content) or {}
            else:
                self._config = toml.loads(config_content)

            logger.info(f"Configuration file loaded: {self.config_file}")
            return self._config

        except (yaml.YAMLError, toml.TomlDecodeError) as e:
            logger.error(f"Configuration file parsing error: {e}")
            raise

    def _create_default_config(self, config_path: Path) -> None:
        """Create default configuration file"""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        if config_path.suffix in (".yaml", ".yml"):
            content = yaml.safe_dump(
                toml.loads(self._get_default_config_content(config_path.parent)),
                sort_keys=False,
            )
        else:
            content = self._get_default_config_content(config_path.parent)

        with open(config_path, "w", encoding="utf-8") as f:
            f.write(content)

        logger.info(f"Default configuration file created: {config_path}")

    def _get_default_config_content(self, config_dir: Path) -> str:
        """Get default configuration content"""
        return f"""# We've Been Here Before - backend configuration
# Location: {config_dir / "config.toml"}

[server]
host = "127.0.0.1"
port = 8000
debug = false

[database]
path = '{config_dir / "herebefore.db"}'

[notifications]
# Local time of day at which check-in reminders fire
hour = 9
minute = 0
title = "Episode Check-in"
# Only used by the in-process notifier
auto_grant_permission = true

[clock]
# IANA zone name, empty for the system local zone
timezone = ""

[checkins]
refresh_interval = 60
cache_enabled = true

[logging]
level = "INFO"
logs_dir = '{config_dir / "logs"}'
max_file_size = "10MB"
backup_count = 5
"""

    def _replace_env_vars(self, content: str) -> str:
        """Replace environment variable placeholders"""

        def replace_var(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) else ""
            return os.getenv(var_name, default_value)

        # Match ${VAR_NAME} or ${VAR_NAME:default_value} format
        pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"
        return re.sub(pattern, replace_var, content)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value, supports dot-separated nested keys"""
        keys = key.split(".")
        value = self._config

        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> bool:
        """Set configuration value, supports dot-separated nested keys"""
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        return self.save()

    def save(self) -> bool:
        """Save configuration to file"""
        try:
            config_path = Path(self.config_file)
            config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_file, "w", encoding="utf-8") as f:
                if self.config_file.endswith((".yaml", ".yml")):
                    yaml.safe_dump(self._config, f, sort_keys=False)
                else:
                    toml.dump(self._config, f)

            logger.info(f"Configuration saved to: {self.config_file}")
            return True

        except OSError as e:
            logger.error(f"Failed to save configuration: {e}")
            return False


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """Convenience function for loading configuration"""
    return get_config(config_file)._config


# Global configuration instance
_config_instance: Optional[ConfigLoader] = None


def get_config(config_file: Optional[str] = None) -> ConfigLoader:
    """Get global configuration instance"""
    global _config_instance
    if config_file is not None:
        _config_instance = ConfigLoader(config_file)
        _config_instance.load()
    elif _config_instance is None:
        _config_instance = ConfigLoader()
        _config_instance.load()
    return _config_instance


def reset_config() -> None:
    """Drop the global instance so the next get_config() reloads from disk"""
    global _config_instance
    _config_instance = None
