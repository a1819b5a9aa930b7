"""
Handler invocation for executor callbacks.

This module holds the pieces the dispatcher uses to reach the user-supplied
handler object: the handle that pairs the handler with the bridge's
self-token, the token itself (through which a handler replies to the driver),
the per-call scope that owns marshalled objects, and the pending-failure slot
drained once per call.

Copyright (c) 2025 Firefly Software Solutions Inc.
Licensed under the Apache License, Version 2.0.
"""

import asyncio
import logging
import traceback
from typing import Any, List, Optional, Protocol, Sequence, TextIO, Tuple

from ..core.errors import DriverNotBoundError, InvocationFailure
from .context_lock import ExecutionContextLock
from .marshaller import MessageMarshaller
from .type_conversion import TypeConverter

logger = logging.getLogger(__name__)
driver_logger = logging.getLogger("execbridge.driver")


class ExecutorDriver(Protocol):
    """The driver surface the bridge relies on.

    Only ``abort`` is required for dispatch; the reply methods are needed
    only when a handler replies through its token.
    """

    def abort(self) -> Any: ...

    def sendStatusUpdate(self, status: Any) -> Any: ...

    def sendFrameworkMessage(self, data: bytes) -> Any: ...


class ExecutorDriverToken:
    """
    Self-token passed as the first argument of every handler call.

    The same instance is used for the bridge's whole lifetime so a handler can
    correlate calls by identity. Its methods let the handler address the
    driver; every such call takes the execution context lock, which is
    re-entered when the handler replies from inside a callback.
    """

    def __init__(
        self,
        bridge_id: str,
        lock: ExecutionContextLock,
        marshaller: MessageMarshaller,
        converter: TypeConverter,
        driver: Optional[ExecutorDriver] = None,
    ):
        self.bridge_id = bridge_id
        self._lock = lock
        self._marshaller = marshaller
        self._converter = converter
        self._driver = driver

    @property
    def driver(self) -> Optional[ExecutorDriver]:
        return self._driver

    def bind_driver(self, driver: ExecutorDriver) -> None:
        """Adopt the driver delivering callbacks if none was bound at construction."""
        if self._driver is None and driver is not None:
            self._driver = driver
            driver_logger.debug(f"Bound driver {type(driver).__name__} to bridge {self.bridge_id}")

    def _require_driver(self, operation: str) -> ExecutorDriver:
        if self._driver is None:
            raise DriverNotBoundError(f"Cannot {operation}: no driver bound to bridge {self.bridge_id}")
        return self._driver

    def sendStatusUpdate(self, status: Any) -> Any:
        """Send a task status update to the driver.

        Args:
            status: TaskStatus record, or any native record with its fields

        Raises:
            TranslationError: if ``status`` does not match the TaskStatus schema
            DriverNotBoundError: if the bridge was built without a driver
        """
        driver = self._require_driver("send status update")
        with self._lock:
            result = self._marshaller.marshal(status, "TaskStatus")
            if not result.ok:
                raise result.error
            update = self._converter.record_to_native(result.value)
            driver_logger.info(
                f"Sending status update {update['state']} for task {update['task_id']['value']}",
                extra={"bridge_id": self.bridge_id},
            )
            return driver.sendStatusUpdate(update)

    def sendFrameworkMessage(self, data: Any) -> Any:
        """Send an opaque message to the framework through the driver."""
        driver = self._require_driver("send framework message")
        with self._lock:
            result = self._marshaller.marshal_bytes(data)
            if not result.ok:
                raise result.error
            driver_logger.info(
                f"Sending framework message of {len(result.value)} bytes",
                extra={"bridge_id": self.bridge_id, "payload": result.value},
            )
            return driver.sendFrameworkMessage(result.value)

    def abort(self) -> Any:
        """Ask the driver to abort."""
        driver = self._require_driver("abort")
        with self._lock:
            driver_logger.warning(
                f"Handler requested driver abort for bridge {self.bridge_id}",
                extra={"bridge_id": self.bridge_id},
            )
            return driver.abort()

    def __repr__(self) -> str:
        return f"ExecutorDriverToken(bridge_id={self.bridge_id!r})"


class HandlerHandle:
    """The user handler paired with the bridge's self-token."""

    def __init__(self, handler: Any, token: ExecutorDriverToken):
        self._handler = handler
        self.token = token

    @property
    def handler(self) -> Any:
        return self._handler

    @property
    def released(self) -> bool:
        return self._handler is None

    def release(self) -> None:
        """Drop the handler reference; later invocations fail."""
        self._handler = None


class PendingFailure:
    """Call-scoped failure slot; keeps the first failure set during a call."""

    def __init__(self):
        self._failure: Optional[BaseException] = None

    def set(self, failure: BaseException) -> None:
        if self._failure is None:
            self._failure = failure

    @property
    def pending(self) -> bool:
        return self._failure is not None

    def drain(self) -> Optional[BaseException]:
        """Return the pending failure and clear the slot."""
        failure, self._failure = self._failure, None
        return failure


class CallScope:
    """
    Owns every object created for one callback.

    Marshalled arguments and the handler's result are adopted into the scope
    and all references are dropped when the scope exits, on every path.
    """

    def __init__(self):
        self._objects: List[Any] = []
        self.released = False

    def adopt(self, obj: Any) -> Any:
        self._objects.append(obj)
        return obj

    @property
    def objects(self) -> Tuple[Any, ...]:
        return tuple(self._objects)

    def release(self) -> None:
        self._objects.clear()
        self.released = True

    def __enter__(self) -> "CallScope":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


class HandlerInvoker:
    """Invokes handler methods by name and captures their failures."""

    def __init__(self, run_coroutines: bool = True):
        self.run_coroutines = run_coroutines

    def invoke(
        self, handle: HandlerHandle, method_name: str, args: Sequence[Any]
    ) -> Tuple[Any, Optional[InvocationFailure]]:
        """
        Call ``method_name`` on the handler with the self-token first.

        Args:
            handle: Handler handle of the bridge
            method_name: Handler method to call
            args: Marshalled arguments, in contract order

        Returns:
            (result, None) on success, (None, InvocationFailure) otherwise
        """
        handler = handle.handler
        if handler is None:
            return None, InvocationFailure(method_name, "handler has been released")

        method = getattr(handler, method_name, None)
        if method is None:
            return None, InvocationFailure(
                method_name, f"{type(handler).__name__} has no method '{method_name}'"
            )
        if not callable(method):
            return None, InvocationFailure(
                method_name, f"{type(handler).__name__}.{method_name} is not callable"
            )

        try:
            result = method(handle.token, *args)
            if self.run_coroutines and asyncio.iscoroutine(result):
                result = self._run_coroutine(result)
        except Exception as e:
            return None, InvocationFailure(method_name, f"{type(e).__name__}: {e}", cause=e)

        return result, None

    @staticmethod
    def _run_coroutine(coroutine) -> Any:
        """Drive a coroutine handler result to completion on a private loop."""
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coroutine)
        finally:
            loop.close()


def report_failure(
    failure: BaseException, stream: Optional[TextIO] = None, event: Optional[str] = None
) -> None:
    """
    Surface a drained failure to operators.

    The failure is logged with its traceback and, when a diagnostic stream is
    given, its traceback is also printed there.
    """
    logger.error(
        f"Callback {event or 'unknown'} failed: {failure}",
        exc_info=(type(failure), failure, failure.__traceback__),
    )
    if stream is None:
        return

    try:
        traceback.print_exception(type(failure), failure, failure.__traceback__, file=stream)
        stream.flush()
    except (OSError, ValueError) as e:
        # A closed or broken diagnostic stream must not turn into a driver-facing error.
        logger.warning(f"Could not print failure to diagnostic stream: {e}", exc_info=True)
