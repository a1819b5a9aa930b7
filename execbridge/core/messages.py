"""
Runtime-side records handed to executor handlers.

These pydantic models are the embedded-runtime representation of the
structured records the driver delivers (executor, framework, node and task
descriptors) plus the status record a handler sends back. Records are
immutable and reject fields their schema does not declare, so a native record
that does not match its schema fails translation instead of being silently
trimmed.
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

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Record(BaseModel):
    """Base class for all marshalled records."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class FrameworkID(Record):
    value: str = Field(min_length=1)


class ExecutorID(Record):
    value: str = Field(min_length=1)


class NodeID(Record):
    value: str = Field(min_length=1)


class TaskID(Record):
    value: str = Field(min_length=1)


class Range(Record):
    begin: int = Field(ge=0)
    end: int = Field(ge=0)


class Resource(Record):
    """A named resource: scalar amount, port ranges, or a set of items."""

    name: str
    type: str = Field(default="SCALAR", description="SCALAR, RANGES, SET or TEXT")
    scalar: Optional[float] = None
    ranges: List[Range] = Field(default_factory=list)
    set: List[str] = Field(default_factory=list)
    role: str = "*"

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        valid_types = {"SCALAR", "RANGES", "SET", "TEXT"}
        if v.upper() not in valid_types:
            raise ValueError(f"Resource type must be one of: {valid_types}")
        return v.upper()


class Attribute(Record):
    name: str
    type: str = "TEXT"
    text: Optional[str] = None
    scalar: Optional[float] = None
    ranges: List[Range] = Field(default_factory=list)
    set: List[str] = Field(default_factory=list)


class CommandURI(Record):
    value: str
    executable: bool = False
    extract: bool = True


class CommandInfo(Record):
    """The command an executor or task runs."""

    value: Optional[str] = None
    uris: List[CommandURI] = Field(default_factory=list)
    environment: Dict[str, str] = Field(default_factory=dict)
    shell: bool = True
    arguments: List[str] = Field(default_factory=list)
    user: Optional[str] = None


class ExecutorInfo(Record):
    """Describes the executor this bridge serves."""

    executor_id: ExecutorID
    command: CommandInfo
    framework_id: Optional[FrameworkID] = None
    resources: List[Resource] = Field(default_factory=list)
    name: Optional[str] = None
    source: Optional[str] = None
    data: Optional[bytes] = None


class FrameworkInfo(Record):
    """Describes the framework that owns the executor."""

    user: str
    name: str
    id: Optional[FrameworkID] = None
    failover_timeout: float = 0.0
    checkpoint: bool = False
    role: str = "*"
    hostname: Optional[str] = None
    principal: Optional[str] = None


class NodeInfo(Record):
    """Describes the node hosting the executor."""

    hostname: str
    port: int = Field(default=5051, ge=0, le=65535)
    id: Optional[NodeID] = None
    resources: List[Resource] = Field(default_factory=list)
    attributes: List[Attribute] = Field(default_factory=list)
    checkpoint: bool = False


class TaskInfo(Record):
    """A unit of work to launch."""

    name: str
    task_id: TaskID
    node_id: NodeID
    resources: List[Resource] = Field(default_factory=list)
    executor: Optional[ExecutorInfo] = None
    command: Optional[CommandInfo] = None
    data: Optional[bytes] = None


class TaskState(str, Enum):
    TASK_STAGING = "TASK_STAGING"
    TASK_STARTING = "TASK_STARTING"
    TASK_RUNNING = "TASK_RUNNING"
    TASK_FINISHED = "TASK_FINISHED"
    TASK_FAILED = "TASK_FAILED"
    TASK_KILLED = "TASK_KILLED"
    TASK_LOST = "TASK_LOST"
    TASK_ERROR = "TASK_ERROR"


class TaskStatus(Record):
    """Status update a handler sends back through its driver token."""

    task_id: TaskID
    state: TaskState
    message: Optional[str] = None
    data: Optional[bytes] = None
    node_id: Optional[NodeID] = None
    executor_id: Optional[ExecutorID] = None
    timestamp: Optional[float] = None


# Kind tags understood by the marshaller.
RECORD_KINDS = {
    "ExecutorInfo": ExecutorInfo,
    "FrameworkInfo": FrameworkInfo,
    "NodeInfo": NodeInfo,
    "SlaveInfo": NodeInfo,
    "TaskInfo": TaskInfo,
    "TaskID": TaskID,
    "TaskStatus": TaskStatus,
}
