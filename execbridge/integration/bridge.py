"""
Executor callback bridge.

The driver calls one method of ``ExecutorCallbackBridge`` per lifecycle event,
synchronously, from its dispatch thread. Each call follows the same template:

1. enter the execution context lock;
2. marshal the event's native arguments, stopping at the first failure;
3. invoke the handler method of the same name with the self-token first;
4. release everything the call created, report the pending failure, and
   abort the driver if the abort policy says so.

Failures never propagate back into the driver. The driver only ever sees a
normal return or a call to its ``abort()``.
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
import time
import uuid
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

from ..config.bridge_config import BridgeConfig, ConfigurationManager
from ..core.events import DriverEvent
from ..core.outcome import FAILURE_INVOCATION, FAILURE_TRANSLATION, CallOutcome
from ..logging.manager import setup_execbridge_logging
from ..utils.helpers import format_duration_ms, generate_call_id, preview_bytes
from ..utils.logging import dispatch_context
from .abort_policy import AbortPolicy
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

logger = logging.getLogger(__name__)


class ExecutorCallbackBridge:
    """
    Bridge between an executor driver and a user-supplied handler object.

    The handler may implement any subset of ``registered``, ``reregistered``,
    ``disconnected``, ``launchTask``, ``killTask``, ``frameworkMessage``,
    ``shutdown`` and ``error``; each receives the bridge's self-token first.
    A missing method counts as a failed call.
    """

    def __init__(
        self,
        handler: Any,
        driver: Optional[ExecutorDriver] = None,
        config: Optional[BridgeConfig] = None,
        lock: Optional[ExecutionContextLock] = None,
        marshaller: Optional[MessageMarshaller] = None,
        abort_policy: Optional[AbortPolicy] = None,
        scope_factory: Callable[[], CallScope] = CallScope,
    ):
        self.config = config or BridgeConfig()
        self.bridge_id = f"bridge-{uuid.uuid4().hex[:12]}"
        self._lock = lock or get_execution_context_lock()
        self._marshaller = marshaller or MessageMarshaller()
        self._abort_policy = abort_policy or AbortPolicy()
        self._invoker = HandlerInvoker(run_coroutines=self.config.run_coroutine_handlers)
        self._scope_factory = scope_factory

        token = ExecutorDriverToken(
            self.bridge_id, self._lock, self._marshaller, self._marshaller.converter, driver
        )
        self._handle = HandlerHandle(handler, token)

        logger.info(f"Executor callback bridge {self.bridge_id} created for {type(handler).__name__}")

    @property
    def handle(self) -> HandlerHandle:
        return self._handle

    @property
    def token(self) -> ExecutorDriverToken:
        """The self-token passed to every handler call."""
        return self._handle.token

    @property
    def lock(self) -> ExecutionContextLock:
        return self._lock

    # Driver-facing callbacks

    def registered(
        self, driver: ExecutorDriver, executor_info: Any, framework_info: Any, node_info: Any
    ) -> CallOutcome:
        """The executor has registered with its node."""
        return self._dispatch(
            driver, DriverEvent.REGISTERED, (executor_info, framework_info, node_info)
        )

    def reregistered(self, driver: ExecutorDriver, node_info: Any) -> CallOutcome:
        """The executor has re-registered with a restarted node."""
        return self._dispatch(driver, DriverEvent.REREGISTERED, (node_info,))

    def disconnected(self, driver: ExecutorDriver) -> CallOutcome:
        return self._dispatch(driver, DriverEvent.DISCONNECTED, ())

    def launch_task(self, driver: ExecutorDriver, task: Any) -> CallOutcome:
        return self._dispatch(driver, DriverEvent.LAUNCH_TASK, (task,))

    def kill_task(self, driver: ExecutorDriver, task_id: Any) -> CallOutcome:
        return self._dispatch(driver, DriverEvent.KILL_TASK, (task_id,))

    def framework_message(
        self, driver: ExecutorDriver, data: Any, length: Optional[int] = None
    ) -> CallOutcome:
        """An opaque message from the framework; ``length`` bounds the payload."""
        if logger.isEnabledFor(logging.DEBUG) and isinstance(data, (bytes, bytearray, memoryview)):
            logger.debug(
                f"Framework message payload: "
                f"{preview_bytes(data, self.config.diagnostics.log_payload_bytes)}"
            )
        return self._dispatch(driver, DriverEvent.FRAMEWORK_MESSAGE, (data,), length)

    def shutdown(self, driver: ExecutorDriver) -> CallOutcome:
        return self._dispatch(driver, DriverEvent.SHUTDOWN, ())

    def error(
        self, driver: ExecutorDriver, message: Any, length: Optional[int] = None
    ) -> CallOutcome:
        """A driver error; a failure here is reported but never aborts."""
        return self._dispatch(driver, DriverEvent.ERROR, (message,), length)

    # Native callback names
    launchTask = launch_task
    killTask = kill_task
    frameworkMessage = framework_message

    def close(self) -> None:
        """Release the handler; later callbacks fail and abort the driver."""
        if self._lock.torn_down:
            self._handle.release()
        else:
            with self._lock:
                self._handle.release()
        logger.info(f"Executor callback bridge {self.bridge_id} closed")

    # Dispatch

    def _dispatch(
        self,
        driver: ExecutorDriver,
        event: DriverEvent,
        natives: Sequence[Any],
        length: Optional[int] = None,
    ) -> CallOutcome:
        call_id = generate_call_id()
        started = time.monotonic()
        failure = PendingFailure()

        with self._lock, dispatch_context(call_id, event.value, self.bridge_id):
            self._handle.token.bind_driver(driver)

            with self._scope_factory() as scope:
                failure_kind = self._marshal_and_invoke(event, natives, length, scope, failure)

            outcome = CallOutcome(
                event=event.value,
                call_id=call_id,
                success=failure_kind is None,
                failure_kind=failure_kind,
                duration_ms=int((time.monotonic() - started) * 1000),
            )

            drained = failure.drain()
            if drained is not None:
                outcome.error = str(drained)
                report_failure(drained, self.config.diagnostics.get_stream(), event.value)

            self._abort_policy.apply(event, outcome, driver)

            if self.config.log_dispatches:
                logger.debug(
                    f"Dispatched {event.value} in {format_duration_ms(outcome.duration_ms)}",
                    extra={"failure_kind": outcome.failure_kind, "outcome": outcome.to_dict()},
                )

        return outcome

    def _marshal_and_invoke(
        self,
        event: DriverEvent,
        natives: Sequence[Any],
        length: Optional[int],
        scope: CallScope,
        failure: PendingFailure,
    ) -> Optional[str]:
        """Run steps 2 and 3 of the template; return the failure kind, if any."""
        args = []
        for kind, native in zip(event.argument_kinds, natives):
            result = self._marshal_argument(kind, native, length)
            if not result.ok:
                failure.set(result.error)
                return FAILURE_TRANSLATION
            args.append(scope.adopt(result.value))

        result, error = self._invoker.invoke(self._handle, event.method_name, args)
        if error is not None:
            failure.set(error)
            return FAILURE_INVOCATION

        scope.adopt(result)
        return None

    def _marshal_argument(self, kind: str, native: Any, length: Optional[int]) -> MarshalResult:
        if kind == "bytes":
            return self._marshaller.marshal_bytes(native, length)
        if kind == "text":
            return self._marshaller.marshal_text(native, length)
        return self._marshaller.marshal(native, kind)


def create_bridge(
    handler: Any,
    driver: Optional[ExecutorDriver] = None,
    config_file: Optional[Union[str, Path]] = None,
    setup_logging: bool = True,
) -> ExecutorCallbackBridge:
    """
    Build a bridge from file and environment configuration.

    Args:
        handler: User handler object
        driver: Driver the handler's token replies to
        config_file: Optional JSON, YAML or TOML configuration file
        setup_logging: Install the bridge logging handlers from the configuration

    Returns:
        A ready ExecutorCallbackBridge
    """
    config = ConfigurationManager.load_config(config_file)
    for warning in config.validate_configuration():
        logger.warning(f"Configuration warning: {warning}")

    if setup_logging:
        setup_execbridge_logging(config)

    return ExecutorCallbackBridge(handler, driver=driver, config=config)
