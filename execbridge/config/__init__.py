"""
Configuration module for the executor callback bridge.
"""

from .bridge_config import (
    BridgeConfig,
    ConfigurationManager,
    DiagnosticsConfig,
    LoggingConfig,
)

__all__ = [
    "BridgeConfig",
    "ConfigurationManager",
    "DiagnosticsConfig",
    "LoggingConfig",
]
