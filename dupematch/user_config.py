"""
User configuration management for dupematch.

Supports configuration from multiple sources (in order of priority):
1. Runtime parameters (highest priority)
2. Environment variables
3. User config file (~/.dupematch/config.json)
4. Default values from config.py (lowest priority)

Configuration file location: ~/.dupematch/config.json

Example config.json:
{
    "default_threshold": 85,
    "default_workers": 4,
    "images_dir": "./images",
    "descriptor": "gradient",
    "hybrid_mode": true,
    "max_upload_bytes": 10485760,
    "port": 8080
}
"""

import json
import os
from pathlib import Path
from typing import Any, Optional
import logging

from .config import (
    DEFAULT_THRESHOLD,
    DEFAULT_WORKERS,
    DEFAULT_DESCRIPTOR,
    DEFAULT_PORT,
    IMAGES_DIR,
    MAX_UPLOAD_BYTES,
)

logger = logging.getLogger(__name__)

# Env and file spellings of false for boolean settings
_FALSE_STRINGS = {'', '0', 'false', 'no', 'off'}


class UserConfig:
    """
    Manages user configuration from file and environment variables.

    The config file is loaded lazily and cached until reload().
    """

    _instance: Optional['UserConfig'] = None
    _config_data: Optional[dict] = None

    def __new__(cls):
        """Singleton pattern to ensure one config instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def config_dir(self) -> Path:
        """Get the configuration directory path."""
        env_dir = os.getenv('DUPEMATCH_CONFIG_DIR')
        if env_dir:
            return Path(env_dir)
        return Path.home() / '.dupematch'

    @property
    def config_file_path(self) -> Path:
        """Get the configuration file path."""
        return self.config_dir / 'config.json'

    def _load_config_file(self) -> dict:
        """Load configuration from JSON file."""
        if not self.config_file_path.exists():
            return {}

        try:
            with open(self.config_file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
                logger.debug(f"Loaded configuration from {self.config_file_path}")
                return data
        except Exception as e:
            logger.warning(f"Failed to load config file {self.config_file_path}: {e}")
            return {}

    def _get_config_data(self) -> dict:
        """Get cached config data (lazy loading)."""
        if self._config_data is None:
            self._config_data = self._load_config_file()
        return self._config_data

    def reload(self):
        """Reload configuration from file."""
        self._config_data = None

    def get(self, key: str, default: Any = None, env_var: Optional[str] = None) -> Any:
        """
        Get a configuration value with priority:
        1. Environment variable (if env_var specified)
        2. Config file
        3. Default value

        Args:
            key: Configuration key
            default: Default value if not found
            env_var: Optional environment variable name to check

        Returns:
            Configuration value
        """
        if env_var:
            env_value = os.getenv(env_var)
            if env_value is not None:
                # Try to parse as JSON for numbers and booleans
                try:
                    return json.loads(env_value)
                except (json.JSONDecodeError, TypeError):
                    return env_value

        config_data = self._get_config_data()
        if key in config_data:
            return config_data[key]

        return default

    @property
    def default_threshold(self) -> float:
        """Similarity percentage required for a match (0-100)."""
        return float(self.get(
            'default_threshold',
            default=DEFAULT_THRESHOLD,
            env_var='DUPEMATCH_THRESHOLD'
        ))

    @property
    def default_workers(self) -> int:
        """Number of parallel workers for bulk loading."""
        return int(self.get(
            'default_workers',
            default=DEFAULT_WORKERS,
            env_var='DUPEMATCH_WORKERS'
        ))

    @property
    def images_dir(self) -> str:
        """Directory of reference images, loaded at startup."""
        return str(self.get('images_dir', default=IMAGES_DIR, env_var='DUPEMATCH_IMAGES_DIR'))

    @property
    def descriptor(self) -> str:
        """Descriptor strategy: 'none', 'gradient' or 'embedding'."""
        return str(self.get('descriptor', default=DEFAULT_DESCRIPTOR, env_var='DUPEMATCH_DESCRIPTOR'))

    @property
    def hybrid_mode(self) -> bool:
        """Whether queries start in hybrid (descriptor first) mode."""
        value = self.get('hybrid_mode', default=True, env_var='DUPEMATCH_HYBRID')
        if isinstance(value, str):
            return value.strip().lower() not in _FALSE_STRINGS
        return bool(value)

    @property
    def max_upload_bytes(self) -> int:
        """Largest accepted upload for the HTTP layer."""
        return int(self.get(
            'max_upload_bytes',
            default=MAX_UPLOAD_BYTES,
            env_var='DUPEMATCH_MAX_UPLOAD'
        ))

    @property
    def port(self) -> int:
        """Port for the HTTP server."""
        return int(self.get('port', default=DEFAULT_PORT, env_var='DUPEMATCH_PORT'))

    def create_example_config(self):
        """Create an example configuration file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        example_config = {
            "_comment": "dupematch user configuration",
            "default_threshold": DEFAULT_THRESHOLD,
            "default_workers": DEFAULT_WORKERS,
            "images_dir": IMAGES_DIR,
            "descriptor": DEFAULT_DESCRIPTOR,
            "hybrid_mode": True,
            "max_upload_bytes": MAX_UPLOAD_BYTES,
            "port": DEFAULT_PORT,
        }

        try:
            with open(self.config_file_path, 'w', encoding='utf-8') as f:
                json.dump(example_config, f, indent=2)
            logger.info(f"Created example config file at {self.config_file_path}")
            return True
        except Exception as e:
            logger.error(f"Failed to create example config: {e}")
            return False


# Global instance
_user_config = UserConfig()


def get_user_config() -> UserConfig:
    """Get the global UserConfig instance."""
    return _user_config
