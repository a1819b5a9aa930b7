#!/usr/bin/env python3
"""
Configuration classes for the executor callback bridge.

Provides configuration management for logging, failure diagnostics and
handler invocation.
"""

"""
Copyright (c) 2025 Firefly Software Solutions Inc.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at:

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Union

import toml
import yaml
from pydantic import BaseModel, Field, field_validator


class LoggingConfig(BaseModel):
    """Configuration for the bridge logging system."""

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="json", description="Log format: json or text")
    output_file: Optional[str] = Field(default=None, description="Log output file path")
    max_file_size_mb: int = Field(default=100, ge=1, description="Maximum log file size in MB")
    backup_count: int = Field(default=5, ge=1, description="Number of backup log files to keep")
    include_thread_info: bool = Field(
        default=True, description="Include thread information in logs"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v):
        valid_formats = {"json", "text"}
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()


class DiagnosticsConfig(BaseModel):
    """Configuration for surfacing callback failures to operators."""

    print_failures: bool = Field(
        default=True, description="Print drained failure tracebacks to the diagnostic stream"
    )
    stream: str = Field(default="stderr", description="Diagnostic stream: stderr, stdout or none")
    log_payload_bytes: int = Field(
        default=64, ge=0, description="Maximum payload bytes echoed in debug logs"
    )

    @field_validator("stream")
    @classmethod
    def validate_stream(cls, v):
        valid_streams = {"stderr", "stdout", "none"}
        if v.lower() not in valid_streams:
            raise ValueError(f"Diagnostic stream must be one of: {valid_streams}")
        return v.lower()

    def get_stream(self) -> Optional[TextIO]:
        """Resolve the configured stream at call time."""
        if not self.print_failures or self.stream == "none":
            return None
        return sys.stdout if self.stream == "stdout" else sys.stderr


class BridgeConfig(BaseModel):
    """Main configuration class for the executor callback bridge."""

    run_coroutine_handlers: bool = Field(
        default=True, description="Drive coroutine handler results to completion"
    )
    log_dispatches: bool = Field(
        default=True, description="Emit a debug record for every dispatched callback"
    )

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    diagnostics: DiagnosticsConfig = Field(
        default_factory=DiagnosticsConfig, description="Failure diagnostics configuration"
    )

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "BridgeConfig":
        """Load configuration from a JSON, YAML or TOML file."""
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        content = path.read_text(encoding="utf-8")
        suffix = path.suffix.lower()

        try:
            if suffix in [".yml", ".yaml"]:
                data = yaml.safe_load(content)
            elif suffix == ".toml":
                data = toml.loads(content)
            else:
                data = json.loads(content)
        except (json.JSONDecodeError, yaml.YAMLError, toml.TomlDecodeError) as e:
            raise ValueError(f"Failed to parse configuration file: {e}")

        return cls(**(data or {}))

    @classmethod
    def from_env(cls, prefix: str = "EXECBRIDGE_") -> "BridgeConfig":
        """Load configuration from environment variables.

        Only explicitly set variables are applied; everything else keeps the
        model defaults.
        """
        return cls(**ConfigurationManager._get_env_overrides(prefix))

    def to_file(self, config_path: Union[str, Path], format: str = "auto") -> None:
        """Save configuration to a file."""
        path = Path(config_path)

        if format == "auto":
            suffix = path.suffix.lower()
            if suffix in [".yml", ".yaml"]:
                format = "yaml"
            elif suffix == ".toml":
                format = "toml"
            else:
                format = "json"

        data = self.model_dump()

        if format == "yaml":
            content = yaml.dump(data, default_flow_style=False, sort_keys=False, indent=2)
        elif format == "toml":
            content = toml.dumps(_drop_none(data))
        else:
            content = json.dumps(data, indent=2)

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def validate_configuration(self) -> List[str]:
        """Validate the configuration and return any warnings."""
        warnings = []

        if not self.diagnostics.print_failures and self.logging.level in {"ERROR", "CRITICAL"}:
            warnings.append(
                "Failure printing is disabled and log level hides failures; "
                "callback failures will only be visible as driver aborts"
            )

        if self.diagnostics.print_failures and self.diagnostics.stream == "none":
            warnings.append("print_failures is enabled but the diagnostic stream is 'none'")

        if self.logging.output_file and self.logging.max_file_size_mb > 1024:
            warnings.append("Very large log files may be slow to rotate")

        return warnings


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    """TOML has no null; omit unset values so the file round-trips to defaults."""
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = _drop_none(value)
        elif value is not None:
            result[key] = value
    return result


def _parse_bool(value: str) -> bool:
    return value.lower() in {"true", "1", "yes"}


class ConfigurationManager:
    """Utility class for managing configurations."""

    @staticmethod
    def create_default_config_file(path: Union[str, Path], format: str = "yaml") -> None:
        """Create a default configuration file."""
        config = BridgeConfig()
        config.to_file(path, format)

    @staticmethod
    def merge_configs(*configs: BridgeConfig) -> BridgeConfig:
        """Merge multiple configurations, with later configs taking precedence."""
        if not configs:
            return BridgeConfig()

        merged_data = configs[0].model_dump()

        for config in configs[1:]:
            config_data = config.model_dump(exclude_unset=True)
            merged_data = ConfigurationManager._deep_merge(merged_data, config_data)

        return BridgeConfig(**merged_data)

    @staticmethod
    def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = ConfigurationManager._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    @staticmethod
    def load_config(
        config_file: Optional[Union[str, Path]] = None,
        env_prefix: str = "EXECBRIDGE_",
        use_env: bool = True,
    ) -> BridgeConfig:
        """Load configuration from file and/or environment variables."""
        if config_file:
            try:
                base_config = BridgeConfig.from_file(config_file)
            except FileNotFoundError:
                base_config = BridgeConfig()
        else:
            base_config = BridgeConfig()

        if use_env:
            env_overrides = ConfigurationManager._get_env_overrides(env_prefix)
            if env_overrides:
                base_data = base_config.model_dump()
                merged_data = ConfigurationManager._deep_merge(base_data, env_overrides)
                return BridgeConfig(**merged_data)

        return base_config

    @staticmethod
    def _get_env_overrides(prefix: str = "EXECBRIDGE_") -> Dict[str, Any]:
        """Get only the environment variable overrides that are actually set."""
        config_data = {}

        env_mappings = {
            f"{prefix}RUN_COROUTINE_HANDLERS": ("run_coroutine_handlers", _parse_bool),
            f"{prefix}LOG_DISPATCHES": ("log_dispatches", _parse_bool),
            f"{prefix}LOG_LEVEL": ("logging.level", str),
            f"{prefix}LOG_FORMAT": ("logging.format", str),
            f"{prefix}LOG_FILE": ("logging.output_file", str),
            f"{prefix}PRINT_FAILURES": ("diagnostics.print_failures", _parse_bool),
            f"{prefix}DIAGNOSTIC_STREAM": ("diagnostics.stream", str),
            f"{prefix}LOG_PAYLOAD_BYTES": ("diagnostics.log_payload_bytes", int),
        }

        for env_var, (config_key, converter) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    converted_value = converter(value)
                    if "." in config_key:
                        parts = config_key.split(".")
                        current = config_data
                        for part in parts[:-1]:
                            if part not in current:
                                current[part] = {}
                            current = current[part]
                        current[parts[-1]] = converted_value
                    else:
                        config_data[config_key] = converted_value
                except (ValueError, TypeError) as e:
                    raise ValueError(f"Invalid value for {env_var}: {value} ({e})")

        return config_data

    @staticmethod
    def get_default_config() -> BridgeConfig:
        """
        Get the default configuration.

        This configuration uses:
        - JSON logs at INFO level on stdout
        - Failure tracebacks printed to stderr
        - Coroutine handler results driven to completion

        Returns:
            BridgeConfig: Default configuration
        """
        return BridgeConfig()
