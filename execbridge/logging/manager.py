"""
Centralized logging manager for the executor callback bridge.

Provides unified logging setup with JSON formatting, dispatch context and
proper prefix management across the bridge and its driver-facing calls.
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

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import List, Optional

from ..utils.logging import DispatchContextFilter, DispatchContextFormatter
from .json_formatter import BRIDGE_PREFIX, DRIVER_PREFIX, ExecBridgeJSONFormatter

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(call_id)s] [%(event)s] - %(message)s"

BRIDGE_LOGGERS = [
    "execbridge.integration.bridge",
    "execbridge.integration.callbacks",
    "execbridge.integration.marshaller",
    "execbridge.integration.type_conversion",
    "execbridge.integration.abort_policy",
    "execbridge.integration.context_lock",
    "execbridge.logging.manager",
]


class BridgeLoggingManager:
    """
    Central manager for the bridge logging system.

    Installs handlers on the ``execbridge`` logger hierarchy only, so an
    embedding host process keeps control of its own root logger.
    """

    def __init__(self, config=None):
        """
        Initialize the logging manager.

        Args:
            config: Bridge configuration containing logging settings
        """
        self.config = config
        self.configured = False
        self._handlers: List[logging.Handler] = []

        # Default settings if no config provided
        self.log_level = logging.INFO
        self.format_type = "json"
        self.output_file = None
        self.max_file_size_mb = 100
        self.backup_count = 5
        self.include_thread_info = True
        self.payload_bytes = 64

        if config and hasattr(config, "logging"):
            logging_config = config.logging
            self.log_level = getattr(logging, logging_config.level)
            self.format_type = logging_config.format
            self.output_file = logging_config.output_file
            self.max_file_size_mb = logging_config.max_file_size_mb
            self.backup_count = logging_config.backup_count
            self.include_thread_info = logging_config.include_thread_info

        if config and hasattr(config, "diagnostics"):
            self.payload_bytes = config.diagnostics.log_payload_bytes

    def setup_logging(self, stream=None) -> None:
        """Setup the complete bridge logging system."""
        if self.configured:
            return

        self._setup_bridge_logging(stream or sys.stdout)
        self._setup_driver_logging(stream or sys.stdout)
        self._configure_component_loggers()

        self.configured = True

        logger = logging.getLogger(__name__)
        logger.info(
            "execbridge logging system initialized",
            extra={
                "log_level": logging.getLevelName(self.log_level),
                "format_type": self.format_type,
                "output_file": self.output_file,
            },
        )

    def _make_formatter(self, driver: bool = False) -> logging.Formatter:
        if self.format_type == "json":
            return ExecBridgeJSONFormatter(
                prefix=DRIVER_PREFIX if driver else BRIDGE_PREFIX,
                include_thread_info=self.include_thread_info,
                payload_bytes=self.payload_bytes,
            )
        return DispatchContextFormatter(TEXT_FORMAT)

    def _attach(self, logger: logging.Logger, handler: logging.Handler, driver: bool) -> None:
        handler.setFormatter(self._make_formatter(driver))
        handler.setLevel(self.log_level)
        handler.addFilter(DispatchContextFilter())
        logger.addHandler(handler)
        self._handlers.append(handler)

    def _rotating_handler(self, path: Path) -> logging.Handler:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.handlers.RotatingFileHandler(
            filename=str(path),
            maxBytes=self.max_file_size_mb * 1024 * 1024,
            backupCount=self.backup_count,
            encoding="utf-8",
        )

    def _setup_bridge_logging(self, stream) -> None:
        """Setup the top-level execbridge logger."""
        bridge_logger = logging.getLogger("execbridge")
        bridge_logger.setLevel(self.log_level)
        bridge_logger.handlers.clear()

        self._attach(bridge_logger, logging.StreamHandler(stream), driver=False)

        if self.output_file:
            self._attach(bridge_logger, self._rotating_handler(Path(self.output_file)), driver=False)

    def _setup_driver_logging(self, stream) -> None:
        """Setup the logger for calls forwarded to the driver."""
        driver_logger = logging.getLogger("execbridge.driver")
        driver_logger.setLevel(self.log_level)
        driver_logger.handlers.clear()

        self._attach(driver_logger, logging.StreamHandler(stream), driver=True)

        if self.output_file:
            path = Path(self.output_file).with_suffix(".driver.log")
            self._attach(driver_logger, self._rotating_handler(path), driver=True)

        # Prevent driver logs from propagating to avoid duplicates
        driver_logger.propagate = False

    def _configure_component_loggers(self) -> None:
        for logger_name in BRIDGE_LOGGERS:
            logger = logging.getLogger(logger_name)
            logger.setLevel(self.log_level)
            logger.propagate = True

    def get_logger(self, name: str) -> logging.Logger:
        """Get a configured logger for the given name."""
        if not self.configured:
            self.setup_logging()

        return logging.getLogger(name)

    def shutdown(self) -> None:
        """Detach and close every handler this manager installed."""
        for handler in self._handlers:
            for name in ["execbridge", "execbridge.driver"]:
                logging.getLogger(name).removeHandler(handler)
            handler.close()
        self._handlers.clear()
        self.configured = False


_logging_manager: Optional[BridgeLoggingManager] = None


def get_logging_manager(config=None) -> BridgeLoggingManager:
    """Get or create the global logging manager."""
    global _logging_manager

    if _logging_manager is None:
        _logging_manager = BridgeLoggingManager(config)

    return _logging_manager


def setup_execbridge_logging(config=None, stream=None) -> None:
    """Setup the bridge logging system."""
    manager = get_logging_manager(config)
    manager.setup_logging(stream)


def get_execbridge_logger(name: str) -> logging.Logger:
    """Get a bridge logger with proper configuration."""
    manager = get_logging_manager()
    return manager.get_logger(f"execbridge.{name}")


def shutdown_execbridge_logging() -> None:
    """Shutdown the bridge logging system."""
    global _logging_manager

    if _logging_manager:
        _logging_manager.shutdown()
        _logging_manager = None
