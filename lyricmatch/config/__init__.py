"""
Configuration management package for Lyrics-Matcher

Settings are loaded from YAML files and environment variables into section
dataclasses and shared through a singleton:

    from lyricmatch.config import get_settings

    settings = get_settings()
    strategy = settings.get_search_strategy()

Configuration sources in order of precedence:
1. Environment variables (highest priority)
2. YAML configuration files
3. Default values
"""

from .settings import get_settings, reload_settings, Settings

__all__ = [
    'get_settings',      # Factory function for singleton settings access
    'reload_settings',   # Function to reload settings from files
    'Settings',          # Settings class for direct instantiation
]
