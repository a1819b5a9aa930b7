"""
Integration layer between the executor driver and the embedded runtime.

This module contains all components responsible for bridging driver
callbacks into handler calls:
- Execution context locking
- Marshalling of native records into runtime records
- Handler invocation and the driver-facing self-token
- Abort policy for failed callbacks

Architecture:
    Executor Driver (dispatch thread)
         │
         ├─> ExecutorCallbackBridge ──> ExecutionContextLock
         │          │
         │          ├─> MessageMarshaller ──> TypeConverter
         │          ├─> HandlerInvoker ──> handler.<event>(token, *args)
         │          └─> AbortPolicy ──> driver.abort()
         │
         └<──────────── ExecutorDriverToken (handler replies)

Public API:
    - ExecutorCallbackBridge: Dispatches driver callbacks to a handler
    - create_bridge: Build a bridge from file/environment configuration
    - ExecutionContextLock: Re-entrant guard around the embedded runtime
    - MessageMarshaller: Native records to runtime records
    - AbortPolicy: Abort-or-continue decision for failed callbacks
"""

from .abort_policy import AbortPolicy
from .bridge import ExecutorCallbackBridge, create_bridge
from .callbacks import (
    CallScope,
    ExecutorDriver,
    ExecutorDriverToken,
    HandlerHandle,
    HandlerInvoker,
    PendingFailure,
    report_failure,
)
from .context_lock import ExecutionContextLock, get_execution_context_lock
from .marshaller import MarshalResult, MessageMarshaller
from .type_conversion import TypeConverter, get_type_converter

__all__ = [
    # Core bridge
    "ExecutorCallbackBridge",
    "create_bridge",
    # Locking
    "ExecutionContextLock",
    "get_execution_context_lock",
    # Marshalling
    "MessageMarshaller",
    "MarshalResult",
    "TypeConverter",
    "get_type_converter",
    # Handler invocation
    "CallScope",
    "ExecutorDriver",
    "ExecutorDriverToken",
    "HandlerHandle",
    "HandlerInvoker",
    "PendingFailure",
    "report_failure",
    # Abort policy
    "AbortPolicy",
]
