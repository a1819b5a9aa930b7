"""
Execution context lock for the embedded runtime.

Only one thread at a time may touch runtime objects or invoke handler
methods. The driver's dispatch thread takes this lock for every callback, and
handler-initiated driver calls take it too, so the two never interleave. The
lock is re-entrant: a handler that replies through its driver token while a
callback is in flight re-enters on the same thread.
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
import threading
from typing import Optional

from ..core.errors import ExecutionContextTornDown

logger = logging.getLogger(__name__)


class ExecutionContextLock:
    """Scoped, re-entrant guard around the embedded runtime."""

    def __init__(self, name: str = "execbridge-runtime"):
        self.name = name
        self._lock = threading.RLock()
        self._owner: Optional[int] = None
        self._depth = 0
        self._torn_down = False

    def acquire(self) -> None:
        """Block until the calling thread owns the runtime.

        Raises:
            ExecutionContextTornDown: if the runtime is being torn down.
        """
        if self._torn_down:
            raise ExecutionContextTornDown(f"{self.name} is being torn down")
        self._lock.acquire()
        if self._torn_down:
            self._lock.release()
            raise ExecutionContextTornDown(f"{self.name} is being torn down")
        self._owner = threading.get_ident()
        self._depth += 1

    def release(self) -> None:
        self._depth -= 1
        if self._depth == 0:
            self._owner = None
        self._lock.release()

    def __enter__(self) -> "ExecutionContextLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def held_by_current_thread(self) -> bool:
        return self._owner == threading.get_ident()

    @property
    def depth(self) -> int:
        """Re-entry depth of the owning thread (0 when free)."""
        return self._depth

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def teardown(self) -> None:
        """Refuse every later acquisition.

        Waits for the callback in flight, if any, to leave the runtime first.
        """
        with self._lock:
            self._torn_down = True
        logger.info(f"Execution context {self.name} torn down")


_execution_context_lock = ExecutionContextLock()


def get_execution_context_lock() -> ExecutionContextLock:
    """Get the process-wide execution context lock."""
    return _execution_context_lock
