"""Configuration module -- exports Settings, validation and the YAML loader."""

from src.config.loader import load_config
from src.config.settings import Settings, validate_settings

__all__ = ["Settings", "load_config", "validate_settings"]
