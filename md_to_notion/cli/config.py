"""YAML configuration file loading and validation.

A config file holds defaults for the sync options so long command lines
do not have to be repeated. Every key is optional; command-line values
override file values, which override built-in defaults.

Configuration file structure:
    parallel_limit: 25
    request_delay_ms: 50
    max_retry_attempts: 3
    max_depth: 10
    delete_orphans: false
    state_file: ~/.md-to-notion/sync-state.json
    include: docs
    exclude: node_modules
    link_replacer: "[${text}](https://example.com/${linkPathFromRoot})"
"""

import os
from typing import Any, Dict, Optional

import yaml

from md_to_notion.file_mapper.errors import ConfigError, FilesystemError

from .errors import ConfigNotFoundError
from .models import FileConfig


class ConfigLoader:
    """Handles configuration file loading and validation."""

    DEFAULT_CONFIG_FILE = '.md-to-notion.yaml'

    # Expected type per key; bool is checked before int since bool is an int
    FIELD_TYPES = {
        'parallel_limit': int,
        'request_delay_ms': int,
        'max_retry_attempts': int,
        'max_depth': int,
        'delete_orphans': bool,
        'state_file': str,
        'include': str,
        'exclude': str,
        'link_replacer': str,
    }

    POSITIVE_FIELDS = {'parallel_limit', 'max_retry_attempts'}
    NON_NEGATIVE_FIELDS = {'request_delay_ms', 'max_depth'}

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> FileConfig:
        """Load configuration from a YAML file.

        Without an explicit path, '.md-to-notion.yaml' in the current
        directory is used when present; otherwise defaults apply.

        Args:
            config_path: Path to the YAML configuration file (optional)

        Returns:
            FileConfig with the values present in the file

        Raises:
            ConfigNotFoundError: If an explicit config_path does not exist
            FilesystemError: If the file cannot be read
            ConfigError: If the configuration is malformed
        """
        if config_path is None:
            if not os.path.exists(cls.DEFAULT_CONFIG_FILE):
                return FileConfig()
            config_path = cls.DEFAULT_CONFIG_FILE

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ConfigNotFoundError(config_path)
        except PermissionError:
            raise FilesystemError(
                config_path,
                'read',
                'Permission denied'
            )
        except OSError as e:
            raise FilesystemError(
                config_path,
                'read',
                str(e)
            )

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML syntax: {str(e)}"
            )

        if config_dict is None:
            return FileConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> FileConfig:
        """Validate keys and value types.

        Raises:
            ConfigError: Naming the offending field
        """
        unknown = set(config_dict) - set(cls.FIELD_TYPES)
        if unknown:
            raise ConfigError(
                f"Unknown fields: {', '.join(sorted(unknown))}"
            )

        values: Dict[str, Any] = {}
        for name, value in config_dict.items():
            if value is None:
                continue
            expected = cls.FIELD_TYPES[name]
            if expected is int and isinstance(value, bool):
                raise ConfigError("Must be an integer", config_field=name)
            if not isinstance(value, expected):
                raise ConfigError(
                    f"Must be of type {expected.__name__}, got {type(value).__name__}",
                    config_field=name,
                )
            if name in cls.POSITIVE_FIELDS and value < 1:
                raise ConfigError("Must be at least 1", config_field=name)
            if name in cls.NON_NEGATIVE_FIELDS and value < 0:
                raise ConfigError("Must not be negative", config_field=name)
            values[name] = value

        if 'state_file' in values:
            values['state_file'] = os.path.expanduser(values['state_file'])

        return FileConfig(**values)
