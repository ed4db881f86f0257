"""Configuration management for duocontrol.

Loads and validates YAML-based configuration with Pydantic models.
Environment variables override file values.
"""

from duocontrol.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
