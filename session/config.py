#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration management for the tagger.
Loads YAML config with environment variable support.
"""

import copy
import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional

from sources.acoustid import DEFAULT_CLIENT_KEY
from sources.musicbrainz import DEFAULT_USER_AGENT


DEFAULT_CONFIG_PATH = "tagger-config.yaml"


class ConfigManager:
    """
    Configuration manager that loads settings from a YAML file.
    Supports environment variable expansion for sensitive values.
    """

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration file"""
        if self.config_path.exists():
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
            self._config = self._merge(self._default_config(), loaded)
        else:
            print(f"[Config] Warning: Config file not found: {self.config_path}")
            self._config = self._default_config()

    def save(self) -> None:
        """Write the current configuration back to the YAML file"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration"""
        return {
            'library': {
                'include_subfolders': True,
                'remember_last_opened_folder': True,
                'last_opened_folder': None
            },
            'tags': {
                'preserve_modification_timestamp': False,
                'overwrite_with_musicbrainz': True
            },
            'api': {
                'acoustid': {
                    'client_key': DEFAULT_CLIENT_KEY
                },
                'musicbrainz': {
                    'user_agent': DEFAULT_USER_AGENT,
                    'strict_artwork': True
                },
                'http': {
                    'timeout': 30
                }
            }
        }

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        merged = copy.deepcopy(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = self._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get config value with dot notation.

        Examples:
            config.get('api.musicbrainz.user_agent')
            config.get('library.include_subfolders')

        Environment variables are expanded if value is like ${VAR_NAME}
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
            if value is None:
                return default

        # Expand environment variables
        if isinstance(value, str) and value.startswith('${') and value.endswith('}'):
            env_var = value[2:-1]
            return os.environ.get(env_var, default)

        return value

    def set(self, key: str, value: Any) -> None:
        """Set config value with dot notation"""
        keys = key.split('.')
        section = self._config
        for k in keys[:-1]:
            if not isinstance(section.get(k), dict):
                section[k] = {}
            section = section[k]
        section[keys[-1]] = value

    @property
    def include_subfolders(self) -> bool:
        return self.get('library.include_subfolders', True)

    @property
    def remember_last_opened_folder(self) -> bool:
        return self.get('library.remember_last_opened_folder', True)

    @property
    def last_opened_folder(self) -> Optional[str]:
        return self.get('library.last_opened_folder')

    @property
    def preserve_modification_timestamp(self) -> bool:
        return self.get('tags.preserve_modification_timestamp', False)

    @property
    def overwrite_with_musicbrainz(self) -> bool:
        return self.get('tags.overwrite_with_musicbrainz', True)

    @property
    def acoustid_client_key(self) -> str:
        return self.get('api.acoustid.client_key', DEFAULT_CLIENT_KEY)

    @property
    def musicbrainz_user_agent(self) -> str:
        return self.get('api.musicbrainz.user_agent', DEFAULT_USER_AGENT)

    @property
    def strict_artwork(self) -> bool:
        return self.get('api.musicbrainz.strict_artwork', True)

    @property
    def http_timeout(self) -> float:
        return self.get('api.http.timeout', 30)

    def __repr__(self) -> str:
        return f"ConfigManager(config={self.config_path})"
