"""
Configuration management for Lyrics-Matcher

This module handles loading, validation, and management of application settings
from multiple sources including YAML files and environment variables. It provides
a centralized configuration system that supports reloading and validation.

The configuration is organized into logical sections using dataclasses:
- LRCLIB API settings (endpoint, timeout, user agent)
- Search defaults (mode, external lookup, cleaned-name retry)
- Batch processing (concurrency window, rate-limit backoff)
- Output naming (filename pattern, export directory)
- Network, logging and storage configuration

The core matching code never reads these settings directly: the CLI turns
them into an explicit SearchStrategy and scheduler parameters at call time.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()


VALID_SEARCH_MODES = ('EXACT', 'FUZZY', 'CACHED')


@dataclass
class LrclibConfig:
    """
    LRCLIB API configuration

    The public LRCLIB instance needs no credentials. The base URL can point
    to a self-hosted mirror exposing the same /get, /get-cached and /search
    endpoints.
    """
    base_url: str = "https://lrclib.net/api"
    timeout: int = 30
    user_agent: str = "Lyrics-Matcher/1.0 (https://github.com/lyrics-matcher/lyrics-matcher)"


@dataclass
class SearchConfig:
    """
    Default search strategy

    mode selects between direct lookup (EXACT), free-text search (FUZZY)
    and cache-only direct lookup (CACHED). try_external allows the slower
    /get endpoint which may query external sources.
    """
    mode: str = "EXACT"
    try_external: bool = True
    retry_cleaned_name: bool = True


@dataclass
class BatchConfig:
    """
    Bulk matching configuration

    concurrency is the size of the in-flight window and rate_limit_backoff
    the pause (seconds) applied to the whole queue after an HTTP 429.
    """
    concurrency: int = 3
    rate_limit_backoff: float = 10.0


@dataclass
class NamingConfig:
    """
    Output naming configuration

    filename_format accepts the {Artist}, {Title} and {Album} placeholders
    or one of the built-in pattern ids (artist-title, title,
    artist-album-title, title-artist).
    """
    filename_format: str = "{Artist} - {Title}"
    output_directory: str = "~/Music/Lyrics"


@dataclass
class NetworkConfig:
    """
    Network resilience settings

    max_retries and retry_delay apply to connection errors and timeouts only;
    HTTP status errors are reported to the caller immediately.
    """
    max_retries: int = 3
    retry_delay: float = 1.0
    min_request_interval: float = 0.1


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings

    Controls application logging behavior including log levels, file output,
    rotation, and console formatting.
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


@dataclass
class SecurityConfig:
    """Storage locations for configuration and logs"""
    config_directory: str = "~/.lyricmatch/"


class Settings:
    """
    Main settings class that manages all configuration

    This class serves as the central configuration manager, loading settings
    from multiple sources (YAML files, environment variables) and providing
    a unified interface for accessing configuration throughout the application.

    The class handles:
    - Loading configuration from YAML files
    - Overriding with environment variables
    - Creating the configuration directory
    - Validating configuration values
    - Saving configuration back to files
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file or environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".lyricmatch"

        # Initialize all configuration objects with default values
        self.lrclib = LrclibConfig()
        self.search = SearchConfig()
        self.batch = BatchConfig()
        self.naming = NamingConfig()
        self.network = NetworkConfig()
        self.logging = LoggingConfig()
        self.security = SecurityConfig()

        # Load configuration from various sources in order of precedence
        self._load_config()
        self._load_environment_variables()
        self._create_directories()

    def _sections(self) -> Dict[str, Any]:
        """Map YAML section names to their dataclass instances"""
        return {
            'lrclib': self.lrclib,
            'search': self.search,
            'batch': self.batch,
            'naming': self.naming,
            'network': self.network,
            'logging': self.logging,
            'security': self.security,
        }

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches for configuration files in multiple locations in order of
        precedence. The first file found will be used.
        """
        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except Exception as e:
                    print(f"Warning: Failed to load config from {path}: {e}")

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Only attributes that exist on the target dataclass are updated, unknown
        sections and keys are ignored.

        Args:
            config_data: Dictionary containing configuration sections
        """
        config_mapping = self._sections()

        for section_name, section_data in config_data.items():
            if section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load configuration overrides from environment variables

        Environment variables take precedence over file-based configuration.
        """
        env_mappings = {
            'LRCLIB_BASE_URL': lambda v: setattr(self.lrclib, 'base_url', v),
            'LYRICMATCH_OUTPUT_DIR': lambda v: setattr(self.naming, 'output_directory', v),
            'LYRICMATCH_SEARCH_MODE': lambda v: setattr(self.search, 'mode', v.upper()),
            'LYRICMATCH_LOG_LEVEL': lambda v: setattr(self.logging, 'level', v.upper()),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                setter(value)

    def _create_directories(self) -> None:
        """
        Create the configuration directory

        Permission errors are reported as warnings, the application can still
        run with defaults.
        """
        directory = Path(self.security.config_directory).expanduser()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except Exception as e:
            print(f"Warning: Failed to create directory {directory}: {e}")

    def get_output_directory(self) -> Path:
        """
        Get the expanded lyrics output directory path

        Returns:
            Path object for the output directory
        """
        return Path(self.naming.output_directory).expanduser()

    def get_config_directory(self) -> Path:
        """
        Get the expanded config directory path

        Returns:
            Path object for the configuration directory
        """
        return Path(self.security.config_directory).expanduser()

    def get_search_strategy(self):
        """
        Build the default SearchStrategy from the search section

        Returns:
            SearchStrategy value to hand to the matching layer
        """
        # Imported here to keep the settings module free of model imports at load time
        from ..lrclib.models import SearchMode, SearchStrategy

        return SearchStrategy(
            mode=SearchMode(self.search.mode.upper()),
            try_external=bool(self.search.try_external)
        )

    def save_config(self, path: Optional[str] = None) -> None:
        """
        Save current configuration to file

        Args:
            path: Custom path to save config, defaults to user config directory

        Raises:
            Exception: If the configuration cannot be saved
        """
        if not path:
            path = self.get_config_directory() / "config.yaml"
        else:
            path = Path(path)

        config_data = {
            name: self._dataclass_to_dict(section)
            for name, section in self._sections().items()
        }

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                yaml.dump(config_data, f, default_flow_style=False, indent=2)
        except Exception as e:
            raise Exception(f"Failed to save config to {path}: {e}")

    def _dataclass_to_dict(self, obj) -> Dict[str, Any]:
        """
        Convert dataclass to dictionary

        Args:
            obj: Dataclass instance to convert

        Returns:
            Dictionary representation of the dataclass
        """
        result = {}
        for key, value in obj.__dict__.items():
            result[key] = value
        return result

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Return every section as a plain dictionary (for display)"""
        return {
            name: self._dataclass_to_dict(section)
            for name, section in self._sections().items()
        }

    def get_validation_errors(self) -> list:
        """
        Collect configuration problems

        Returns:
            List of human-readable error strings, empty when valid
        """
        errors = []

        if not str(self.lrclib.base_url).startswith(('http://', 'https://')):
            errors.append(f"Invalid LRCLIB base URL: {self.lrclib.base_url}")

        if str(self.search.mode).upper() not in VALID_SEARCH_MODES:
            errors.append(f"Invalid search mode: {self.search.mode}")

        if not isinstance(self.batch.concurrency, int) or self.batch.concurrency < 1:
            errors.append(f"Invalid batch concurrency: {self.batch.concurrency}")

        try:
            if float(self.batch.rate_limit_backoff) < 0:
                errors.append(f"Invalid rate limit backoff: {self.batch.rate_limit_backoff}")
        except (TypeError, ValueError):
            errors.append(f"Invalid rate limit backoff: {self.batch.rate_limit_backoff}")

        if not self.naming.filename_format:
            errors.append("Filename format must not be empty")

        if str(self.logging.level).upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            errors.append(f"Invalid logging level: {self.logging.level}")

        return errors

    def validate(self) -> bool:
        """
        Validate current configuration

        Prints every problem found so the user can fix the config file.

        Returns:
            True if configuration is valid, False otherwise
        """
        errors = self.get_validation_errors()

        if errors:
            print("Configuration validation errors:")
            for error in errors:
                print(f"  - {error}")
            return False

        return True

    def __str__(self) -> str:
        """Concise summary of key configuration values"""
        sections = [
            f"LRCLIB: {self.lrclib.base_url}",
            f"Mode: {self.search.mode}",
            f"External: {'yes' if self.search.try_external else 'no'}",
            f"Concurrency: {self.batch.concurrency}",
        ]
        return f"Settings({', '.join(sections)})"


# Global settings instance for singleton pattern
settings = Settings()


def get_settings() -> Settings:
    """
    Get the global settings instance

    Returns:
        The global Settings instance
    """
    return settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Creates a new settings instance with updated configuration from files
    and environment variables.

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global settings
    settings = Settings(config_path)
    return settings
