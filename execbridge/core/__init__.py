"""
Core types for the executor callback bridge: driver events, marshalled
records, call outcomes and errors.
"""

from .errors import (
    BridgeError,
    DriverNotBoundError,
    ExecutionContextTornDown,
    InvocationFailure,
    TranslationError,
)
from .events import DriverEvent
from .messages import (
    Attribute,
    CommandInfo,
    CommandURI,
    ExecutorID,
    ExecutorInfo,
    FrameworkID,
    FrameworkInfo,
    NodeID,
    NodeInfo,
    Range,
    Record,
    Resource,
    TaskID,
    TaskInfo,
    TaskState,
    TaskStatus,
)
from .outcome import CallOutcome

__all__ = [
    "BridgeError",
    "DriverNotBoundError",
    "ExecutionContextTornDown",
    "InvocationFailure",
    "TranslationError",
    "DriverEvent",
    "Attribute",
    "CommandInfo",
    "CommandURI",
    "ExecutorID",
    "ExecutorInfo",
    "FrameworkID",
    "FrameworkInfo",
    "NodeID",
    "NodeInfo",
    "Range",
    "Record",
    "Resource",
    "TaskID",
    "TaskInfo",
    "TaskState",
    "TaskStatus",
    "CallOutcome",
]
