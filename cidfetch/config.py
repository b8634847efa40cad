"""
load the config from config.yaml and environment variables
"""

import os
import yaml
from pathlib import Path
from typing import Any, Callable, Dict, Tuple


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"not a boolean: {value!r}")


class Config:
    """Configuration loader that reads from config.yaml and environment variables."""

    # Environment variable -> (nested config key path, parser)
    # Secrets and URLs are kept verbatim; "00123" is a token, not a number
    ENV_MAPPINGS: Dict[str, Tuple[Tuple[str, ...], Callable[[str], Any]]] = {
        'GATEWAY_URL': (('gateway', 'url'), str),
        'GATEWAY_TIMEOUT': (('gateway', 'timeout'), float),
        'PINATA_JWT': (('gateway', 'jwt'), str),
        'PINATA_GATEWAY_TOKEN': (('gateway', 'access_token'), str),
        'CACHE_MAX_ENTRIES': (('cache', 'max_entries'), int),
        'CACHE_TTL_SECONDS': (('cache', 'ttl_seconds'), float),
        'RETRY_MAX_RETRIES': (('retry', 'max_retries'), int),
        'RETRY_BASE_DELAY': (('retry', 'base_delay'), float),
        'FETCHER_SETTLE_ON_CACHE_HIT': (('fetcher', 'settle_on_cache_hit'), _parse_bool),
        'LOG_LEVEL': (('logging', 'level'), str),
    }

    def __init__(self, config_path: str = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to config.yaml file. If None, uses the config.yaml
                        shipped next to this module.
        """
        if config_path is None:
            config_path = Path(__file__).parent / "config.yaml"

        self.config_path = Path(config_path)
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        if not self.config_path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            config = yaml.safe_load(self.config_path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {self.config_path}: {e}")
        if not isinstance(config, dict):
            raise ValueError(f"Expected a mapping at the top of {self.config_path}")

        for env_var, (key_path, parse) in self.ENV_MAPPINGS.items():
            raw = os.getenv(env_var)
            if raw is not None:
                self._set_path(config, key_path, self._parse_env(env_var, raw, parse))

        return config

    @staticmethod
    def _parse_env(env_var: str, raw: str, parse: Callable[[str], Any]) -> Any:
        try:
            return parse(raw)
        except ValueError as e:
            raise ValueError(f"Invalid value for {env_var}: {e}")

    @staticmethod
    def _set_path(config: Dict[str, Any], key_path: Tuple[str, ...], value: Any):
        *sections, leaf = key_path
        section = config
        for name in sections:
            if not isinstance(section.get(name), dict):
                section[name] = {}
            section = section[name]
        section[leaf] = value

    def get(self, *keys, default=None):
        """Look up a nested value, e.g. ``config.get('cache', 'ttl_seconds')``.

        Returns default when any key along the way is missing.
        """
        node: Any = self._config
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    @property
    def gateway(self) -> Dict[str, Any]:
        """Get gateway client configuration."""
        return self.get('gateway', default={})

    @property
    def cache(self) -> Dict[str, Any]:
        """Get content cache configuration."""
        return self.get('cache', default={})

    @property
    def retry(self) -> Dict[str, Any]:
        """Get retry configuration."""
        return self.get('retry', default={})

    @property
    def fetcher(self) -> Dict[str, Any]:
        """Get content fetcher configuration."""
        return self.get('fetcher', default={})

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.get('logging', default={})
