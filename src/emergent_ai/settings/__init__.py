"""
Settings management module for Emergent AI.

This module provides configuration management including:
- Settings data model
- YAML-based configuration storage with environment overrides
- Configuration validation
"""

from .models import Settings
from .storage import SettingsStorage
from .validation import ConfigValidator, ValidationResult

__all__ = [
    "Settings",
    "SettingsStorage",
    "ConfigValidator",
    "ValidationResult",
]
