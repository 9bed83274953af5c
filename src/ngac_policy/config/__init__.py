"""
NGAC Engine Configuration Module

Provides centralized configuration management for the policy engine.
"""

from .schema import EngineConfig
from .loader import load_config, load_config_from_file

__all__ = [
    "EngineConfig",
    "load_config",
    "load_config_from_file",
]
