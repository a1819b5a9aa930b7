#!/usr/bin/env python3
"""
execbridge - Executor callback bridge

Bridges lifecycle callbacks from a native executor driver into a Python
handler object, translating structured driver records into runtime records
and turning every failure into a single abort-or-continue decision.

Key Features:
- One synchronous handler call per driver event, serialized by a re-entrant
  execution context lock
- Field-for-field marshalling of executor, framework, node and task records
  into validated pydantic models
- Exact-length byte payloads for framework messages and error text
- Uniform abort policy, with the error event exempt to avoid abort loops
- JSON logging with per-call dispatch context

Usage:
    from execbridge import ExecutorCallbackBridge

    class MyExecutor:

        def launchTask(self, driver, task):
            driver.sendStatusUpdate({"task_id": task.task_id, "state": "TASK_RUNNING"})

    bridge = ExecutorCallbackBridge(MyExecutor(), driver=native_driver)
    # the native driver now calls bridge.launch_task(native_driver, task_info), ...

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

__version__ = "1.0.0"
__author__ = "Firefly Software Solutions Inc"
__license__ = "Apache 2.0"

# Configuration
from .config.bridge_config import (
    BridgeConfig,
    ConfigurationManager,
    DiagnosticsConfig,
    LoggingConfig,
)

# Core types
from .core.errors import (
    BridgeError,
    DriverNotBoundError,
    ExecutionContextTornDown,
    InvocationFailure,
    TranslationError,
)
from .core.events import DriverEvent
from .core.messages import (
    CommandInfo,
    ExecutorInfo,
    FrameworkInfo,
    NodeInfo,
    Resource,
    TaskID,
    TaskInfo,
    TaskState,
    TaskStatus,
)
from .core.outcome import CallOutcome

# Integration layer (dispatch, locking, marshalling, abort policy)
from .integration import (
    AbortPolicy,
    ExecutionContextLock,
    ExecutorCallbackBridge,
    ExecutorDriverToken,
    MessageMarshaller,
    create_bridge,
    get_execution_context_lock,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Bridge
    "ExecutorCallbackBridge",
    "create_bridge",
    "ExecutorDriverToken",
    "ExecutionContextLock",
    "get_execution_context_lock",
    "MessageMarshaller",
    "AbortPolicy",
    # Core types
    "DriverEvent",
    "CallOutcome",
    "CommandInfo",
    "ExecutorInfo",
    "FrameworkInfo",
    "NodeInfo",
    "Resource",
    "TaskID",
    "TaskInfo",
    "TaskState",
    "TaskStatus",
    # Errors
    "BridgeError",
    "DriverNotBoundError",
    "ExecutionContextTornDown",
    "InvocationFailure",
    "TranslationError",
    # Configuration
    "BridgeConfig",
    "ConfigurationManager",
    "DiagnosticsConfig",
    "LoggingConfig",
]
