"""
Logging utilities and configuration for the executor callback bridge.

Provides JSON logging with prefixes for bridge and driver-facing records,
including centralized configuration and dispatch context.
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

from .json_formatter import (
    BRIDGE_PREFIX,
    DISPATCH_FIELDS,
    DRIVER_PREFIX,
    ExecBridgeJSONFormatter,
)
from .manager import (
    BridgeLoggingManager,
    get_execbridge_logger,
    get_logging_manager,
    setup_execbridge_logging,
    shutdown_execbridge_logging,
)

__all__ = [
    "ExecBridgeJSONFormatter",
    "BRIDGE_PREFIX",
    "DRIVER_PREFIX",
    "DISPATCH_FIELDS",
    "BridgeLoggingManager",
    "get_logging_manager",
    "setup_execbridge_logging",
    "get_execbridge_logger",
    "shutdown_execbridge_logging",
]
