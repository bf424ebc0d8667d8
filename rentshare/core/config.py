"""
Configuration loader for RentShare Orders.
Reads config.yaml from the project root (or RENTSHARE_CONFIG).
"""

import yaml
import os
from pathlib import Path
from typing import Any, Optional
import logging

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = ['general', 'backend', 'routes']


class Config:
    """Singleton configuration manager."""

    _instance: Optional['Config'] = None
    _data: dict = {}
    _project_root: Path = None

    def __new__(cls, config_path: Optional[str] = None) -> 'Config':
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._project_root = Path(__file__).resolve().parent.parent.parent
            instance._load(config_path or os.environ.get('RENTSHARE_CONFIG'))
            cls._instance = instance
        return cls._instance

    def _load(self, config_path: Optional[str] = None) -> None:
        """Load configuration from YAML file."""
        if config_path:
            path = Path(config_path)
        else:
            path = self._project_root / "config.yaml"

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            self._data = yaml.safe_load(f) or {}

        missing = [s for s in REQUIRED_SECTIONS if s not in self._data]
        if missing:
            raise ValueError(f"Missing required config sections: {missing}")

        # Keys are usually kept out of the file
        anon_key = os.environ.get('SUPABASE_ANON_KEY')
        if anon_key:
            self._data['backend']['anon_key'] = anon_key

        logger.info(f"Configuration loaded from {path}")

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance so the next access reloads the file."""
        cls._instance = None

    def get(self, *keys: str, default: Any = None) -> Any:
        """
        Get a nested config value.
        Example: config.get('backend', 'timeout') -> config['backend']['timeout']
        """
        value = self._data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_int(self, *keys: str, default: int = 0) -> int:
        """Get integer value."""
        value = self.get(*keys, default=default)
        return int(value) if value is not None else default

    @property
    def log_path(self) -> Optional[Path]:
        """Get log file path, or None to log to console only."""
        log_name = self.get('general', 'log_file', default='rentshare.log')
        if not log_name:
            return None
        return self._project_root / log_name

    @property
    def routes(self) -> dict:
        """Route table for navigation links."""
        return dict(self.get('routes', default={}))


def get_config() -> Config:
    """Get the global config instance."""
    return Config()
