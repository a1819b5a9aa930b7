"""
Driver event catalogue.

Each member's value is the handler method name invoked for that event; the
argument kinds list the marshalled arguments passed after the self-token, in
contract order.
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
from typing import Tuple


class DriverEvent(str, Enum):
    """Lifecycle events delivered by the executor driver."""

    REGISTERED = "registered"
    REREGISTERED = "reregistered"
    DISCONNECTED = "disconnected"
    LAUNCH_TASK = "launchTask"
    KILL_TASK = "killTask"
    FRAMEWORK_MESSAGE = "frameworkMessage"
    SHUTDOWN = "shutdown"
    ERROR = "error"

    @property
    def method_name(self) -> str:
        """Name of the handler method invoked for this event."""
        return self.value

    @property
    def argument_kinds(self) -> Tuple[str, ...]:
        return _ARGUMENT_KINDS[self]

    @property
    def aborts_on_failure(self) -> bool:
        """Whether a dispatch failure on this event aborts the driver."""
        return self is not DriverEvent.ERROR


_ARGUMENT_KINDS = {
    DriverEvent.REGISTERED: ("ExecutorInfo", "FrameworkInfo", "NodeInfo"),
    DriverEvent.REREGISTERED: ("NodeInfo",),
    DriverEvent.DISCONNECTED: (),
    DriverEvent.LAUNCH_TASK: ("TaskInfo",),
    DriverEvent.KILL_TASK: ("TaskID",),
    DriverEvent.FRAMEWORK_MESSAGE: ("bytes",),
    DriverEvent.SHUTDOWN: (),
    DriverEvent.ERROR: ("text",),
}
