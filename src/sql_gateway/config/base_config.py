# src/sql_gateway/config/base_config.py
import os
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Iterable, List, Optional, Union
from dotenv import load_dotenv


class BaseConfig:
    """
    Base configuration class with common functionality for all configuration components.
    Supports loading from environment variables, config files (JSON, YAML), and defaults.
    """

    def __init__(self, config_name: str, env_prefix: str = "", parse_values: bool = True):
        """
        Initialize base configuration.

        Args:
            config_name (str): Name of this configuration component
            env_prefix (str): Prefix for environment variables
            parse_values (bool): Whether environment values are converted to int/float/bool
        """
        self.config_name = config_name
        self.env_prefix = env_prefix
        self.parse_values = parse_values
        self._config_data = {}
        self._config_file_path = None

        # Try to load environment variables from .env file if it exists
        env_path = Path('.env')
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)

    def load_from_env(self, keys: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        Args:
            keys (Optional[Iterable[str]]): Lowercase keys to pick up. When omitted every
                variable carrying the prefix is loaded.

        Returns:
            Dict[str, Any]: Configuration values from environment variables
        """
        env_config = {}
        prefix = f"{self.env_prefix}_" if self.env_prefix else ""
        wanted = {key.lower() for key in keys} if keys is not None else None

        for key, value in os.environ.items():
            if prefix and not key.startswith(prefix):
                continue

            config_key = key[len(prefix):].lower()
            if wanted is not None and config_key not in wanted:
                continue

            env_config[config_key] = self._parse_env_value(value) if self.parse_values else value

        return env_config

    def _parse_env_value(self, value: str) -> Any:
        """
        Parse environment variable value to appropriate type.

        Args:
            value (str): Environment variable value

        Returns:
            Any: Parsed value
        """
        stripped = value.strip()

        # Numbers first so that "1" and "0" stay integers
        if stripped.lstrip('-').isdigit():
            return int(stripped)
        elif stripped.replace('.', '', 1).lstrip('-').isdigit() and stripped.count('.') == 1:
            return float(stripped)
        elif stripped.lower() in ('true', 'yes', 'on'):
            return True
        elif stripped.lower() in ('false', 'no', 'off'):
            return False
        else:
            return value

    def load_from_file(self, file_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            file_path (Union[str, Path]): Path to configuration file

        Returns:
            Dict[str, Any]: Configuration values from file

        Raises:
            ValueError: If file doesn't exist or format is not supported
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path
        if not path.exists():
            raise ValueError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()

        with open(path, 'r') as f:
            if suffix == '.json':
                data = json.load(f)
            elif suffix in ('.yml', '.yaml'):
                data = yaml.safe_load(f)
            else:
                raise ValueError(f"Unsupported configuration file format: {suffix}")

        # An empty YAML file loads as None
        return {str(k).lower(): v for k, v in (data or {}).items()}

    def set_config_file(self, file_path: Union[str, Path]) -> None:
        """
        Set the configuration file path.

        Args:
            file_path (Union[str, Path]): Path to configuration file

        Raises:
            ValueError: If file doesn't exist
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path
        if not path.exists():
            raise ValueError(f"Configuration file not found: {path}")
        self._config_file_path = path

    def load_config(self, defaults: Optional[Dict[str, Any]] = None,
                    config_file: Optional[Union[str, Path]] = None,
                    env_override: bool = True) -> Dict[str, Any]:
        """
        Load configuration from defaults, file, and environment variables.

        When defaults are given, only their keys are picked up from the environment.

        Args:
            defaults (Optional[Dict[str, Any]]): Default configuration values
            config_file (Optional[Union[str, Path]]): Path to configuration file
            env_override (bool): Whether environment variables should override file values

        Returns:
            Dict[str, Any]: Combined configuration
        """
        # Start with defaults
        config = defaults.copy() if defaults else {}

        # Load from file if provided
        if config_file:
            self.set_config_file(config_file)

        if self._config_file_path:
            config.update(self.load_from_file(self._config_file_path))

        if env_override:
            config.update(self.load_from_env(keys=defaults.keys() if defaults else None))

        # Store the configuration
        self._config_data = config
        return config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key (str): Configuration key
            default (Any): Default value if key is not found

        Returns:
            Any: Configuration value
        """
        return self._config_data.get(key, default)

    def get_int(self, key: str, default: int) -> int:
        """
        Get a configuration value as an integer, falling back to the default
        when the value is missing or not numeric.
        """
        value = self._config_data.get(key, default)
        if isinstance(value, bool):
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_list(self, key: str, default: Optional[List[str]] = None) -> List[str]:
        """Get a comma separated configuration value as a list of strings."""
        value = self._config_data.get(key)
        if value is None or value == "":
            return list(default or [])
        if isinstance(value, (list, tuple)):
            return [str(item).strip() for item in value if str(item).strip()]
        return [item.strip() for item in str(value).split(',') if item.strip()]

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            key (str): Configuration key
            value (Any): Configuration value
        """
        self._config_data[key] = value

    def as_dict(self) -> Dict[str, Any]:
        """
        Get the entire configuration as a dictionary.

        Returns:
            Dict[str, Any]: Configuration dictionary
        """
        return self._config_data.copy()
