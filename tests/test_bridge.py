#!/usr/bin/env python3
"""
Tests for the executor callback bridge dispatch template.
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

import asyncio
import io
import sys
import threading
import time
from unittest.mock import Mock

import pytest

from execbridge.config.bridge_config import BridgeConfig, DiagnosticsConfig
from execbridge.core.errors import (
    DriverNotBoundError,
    ExecutionContextTornDown,
    InvocationFailure,
    TranslationError,
)
from execbridge.core.messages import (
    ExecutorInfo,
    FrameworkInfo,
    NodeInfo,
    TaskID,
    TaskInfo,
    TaskState,
)
from execbridge.integration.bridge import ExecutorCallbackBridge, create_bridge
from execbridge.integration.callbacks import ExecutorDriverToken
from execbridge.logging.manager import shutdown_execbridge_logging


class LaunchOnlyHandler:
    """Handler that only knows how to launch tasks."""

    def __init__(self):
        self.launched = []

    def launchTask(self, driver, task):
        self.launched.append(task)


class FailingHandler:
    """Handler whose launchTask raises."""

    def __init__(self):
        self.calls = []

    def launchTask(self, driver, task):
        self.calls.append("launchTask")
        raise RuntimeError("task exploded")


class TestSuccessfulDispatch:
    """Events reach the handler with marshalled arguments and the token first."""

    def test_registered_argument_order(
        self, make_bridge, handler, driver, executor_info, framework_info, node_info
    ):
        bridge = make_bridge(handler)

        outcome = bridge.registered(driver, executor_info, framework_info, node_info)

        assert outcome.success
        assert not outcome.aborted
        name, token, executor, framework, node = handler.calls[0]
        assert name == "registered"
        assert token is bridge.token
        assert isinstance(executor, ExecutorInfo)
        assert isinstance(framework, FrameworkInfo)
        assert isinstance(node, NodeInfo)
        assert executor.executor_id.value == "executor-1"
        assert framework.user == "root"
        assert node.hostname == "node-1.cluster.local"
        driver.abort.assert_not_called()

    def test_token_is_stable_across_calls(self, make_bridge, handler, driver, node_info):
        bridge = make_bridge(handler)

        bridge.reregistered(driver, node_info)
        bridge.disconnected(driver)
        bridge.shutdown(driver)

        tokens = {id(call[1]) for call in handler.calls}
        assert tokens == {id(bridge.token)}
        assert isinstance(bridge.token, ExecutorDriverToken)

    def test_every_event_reaches_its_method(
        self,
        make_bridge,
        handler,
        driver,
        executor_info,
        framework_info,
        node_info,
        task_info,
    ):
        bridge = make_bridge(handler)

        bridge.registered(driver, executor_info, framework_info, node_info)
        bridge.reregistered(driver, node_info)
        bridge.disconnected(driver)
        bridge.launch_task(driver, task_info)
        bridge.kill_task(driver, "task-1")
        bridge.framework_message(driver, b"hello")
        bridge.shutdown(driver)
        bridge.error(driver, b"boom")

        assert handler.names() == [
            "registered",
            "reregistered",
            "disconnected",
            "launchTask",
            "killTask",
            "frameworkMessage",
            "shutdown",
            "error",
        ]
        driver.abort.assert_not_called()

    def test_native_callback_names(self, make_bridge, handler, driver, task_info):
        bridge = make_bridge(handler)

        bridge.launchTask(driver, task_info)
        bridge.killTask(driver, {"value": "task-1"})
        bridge.frameworkMessage(driver, b"x")

        assert handler.names() == ["launchTask", "killTask", "frameworkMessage"]

    def test_launch_task_record(self, make_bridge, handler, driver, task_info):
        bridge = make_bridge(handler)

        bridge.launch_task(driver, task_info)

        task = handler.calls[0][2]
        assert isinstance(task, TaskInfo)
        assert task.task_id == TaskID(value="task-1")
        assert task.data == b"\x00payload\x00"

    def test_framework_message_keeps_zero_bytes(self, make_bridge, handler, driver):
        bridge = make_bridge(handler)

        bridge.framework_message(driver, bytes([0x41, 0x00, 0x42]))

        message = handler.calls[0][2]
        assert message == b"A\x00B"
        assert len(message) == 3

    def test_framework_message_explicit_length(self, make_bridge, handler, driver):
        bridge = make_bridge(handler)

        bridge.framework_message(driver, b"A\x00B\x00\x00\x00", 3)

        assert handler.calls[0][2] == b"A\x00B"

    def test_error_message_is_text(self, make_bridge, handler, driver):
        bridge = make_bridge(handler)

        bridge.error(driver, b"connection lost")

        assert handler.calls[0][2] == "connection lost"

    def test_handler_result_ignored(self, make_bridge, driver):
        class ReturningHandler:
            def shutdown(self, driver):
                return {"status": "bye"}

        bridge = make_bridge(ReturningHandler())

        outcome = bridge.shutdown(driver)

        assert outcome.success
        driver.abort.assert_not_called()


class TestInvocationFailures:
    """A missing or raising handler method aborts the driver exactly once."""

    def test_missing_method_aborts(self, make_bridge, driver):
        bridge = make_bridge(LaunchOnlyHandler())

        outcome = bridge.disconnected(driver)

        assert not outcome.success
        assert outcome.is_invocation_failure
        assert outcome.aborted
        assert "disconnected" in outcome.error
        driver.abort.assert_called_once_with()

    def test_raising_method_aborts(self, make_bridge, driver, task_info):
        handler = FailingHandler()
        bridge = make_bridge(handler)

        outcome = bridge.launch_task(driver, task_info)

        assert handler.calls == ["launchTask"]
        assert outcome.is_invocation_failure
        assert "task exploded" in outcome.error
        driver.abort.assert_called_once_with()

    def test_non_callable_attribute(self, make_bridge, driver):
        class OddHandler:
            shutdown = "not a method"

        bridge = make_bridge(OddHandler())

        outcome = bridge.shutdown(driver)

        assert outcome.is_invocation_failure
        driver.abort.assert_called_once_with()

    def test_failure_printed_to_diagnostic_stream(self, make_bridge, driver, capsys):
        bridge = make_bridge(LaunchOnlyHandler())

        bridge.shutdown(driver)

        err = capsys.readouterr().err
        assert "InvocationFailure" in err
        assert "Failed to call executor's shutdown" in err

    def test_diagnostic_stream_stdout(self, make_bridge, driver, capsys):
        config = BridgeConfig(diagnostics=DiagnosticsConfig(stream="stdout"))
        bridge = make_bridge(LaunchOnlyHandler(), config=config)

        bridge.shutdown(driver)

        assert "Failed to call executor's shutdown" in capsys.readouterr().out

    def test_diagnostic_stream_disabled(self, make_bridge, driver, capsys):
        config = BridgeConfig(
            diagnostics=DiagnosticsConfig(stream="stdout", print_failures=False)
        )
        bridge = make_bridge(LaunchOnlyHandler(), config=config)

        outcome = bridge.shutdown(driver)

        assert outcome.aborted
        assert capsys.readouterr().out == ""

    def test_closed_diagnostic_stream_still_aborts(self, make_bridge, driver, monkeypatch, caplog):
        """A closed stderr is logged; the callback still returns and aborts."""
        closed = io.StringIO()
        closed.close()
        monkeypatch.setattr(sys, "stderr", closed)
        bridge = make_bridge(LaunchOnlyHandler())

        with caplog.at_level("WARNING", logger="execbridge"):
            outcome = bridge.shutdown(driver)

        assert outcome.is_invocation_failure
        assert outcome.aborted
        driver.abort.assert_called_once_with()
        assert "Could not print failure to diagnostic stream" in caplog.text

    def test_driver_abort_failure_not_propagated(self, make_bridge, driver):
        driver.abort.side_effect = RuntimeError("driver already stopped")
        bridge = make_bridge(LaunchOnlyHandler())

        outcome = bridge.shutdown(driver)

        assert outcome.aborted
        driver.abort.assert_called_once_with()

    def test_bridge_continues_after_failure(self, make_bridge, driver, task_info):
        handler = LaunchOnlyHandler()
        bridge = make_bridge(handler)

        bridge.shutdown(driver)
        outcome = bridge.launch_task(driver, task_info)

        assert outcome.success
        assert len(handler.launched) == 1
        assert driver.abort.call_count == 1


class TestErrorEvent:
    """Failures while reporting a driver error never abort."""

    def test_missing_error_method_does_not_abort(self, make_bridge, driver, capsys):
        bridge = make_bridge(LaunchOnlyHandler())

        outcome = bridge.error(driver, b"connection lost")

        assert not outcome.success
        assert not outcome.aborted
        driver.abort.assert_not_called()
        assert "Failed to call executor's error" in capsys.readouterr().err

    def test_raising_error_method_does_not_abort(self, make_bridge, driver):
        class RaisingErrorHandler:
            def error(self, driver, message):
                raise ValueError(message)

        bridge = make_bridge(RaisingErrorHandler())

        outcome = bridge.error(driver, "connection lost")

        assert outcome.is_invocation_failure
        assert "connection lost" in outcome.error
        driver.abort.assert_not_called()

    def test_error_message_with_invalid_utf8(self, make_bridge, handler, driver):
        bridge = make_bridge(handler)

        outcome = bridge.error(driver, b"lost \xff\x00link")

        assert outcome.success
        assert handler.calls[0][2] == "lost \ufffd\x00link"


class TestTranslationFailures:
    """A record that fails to marshal is never handed to the handler."""

    def test_missing_required_field(self, make_bridge, handler, driver, task_info):
        del task_info["task_id"]
        bridge = make_bridge(handler)

        outcome = bridge.launch_task(driver, task_info)

        assert handler.calls == []
        assert outcome.is_translation_failure
        assert "Failed to translate TaskInfo" in outcome.error
        driver.abort.assert_called_once_with()

    def test_first_argument_failure_stops_marshalling(
        self, make_bridge, handler, driver, framework_info, node_info
    ):
        bridge = make_bridge(handler)

        outcome = bridge.registered(driver, {"name": "no id"}, framework_info, node_info)

        assert handler.calls == []
        assert "ExecutorInfo" in outcome.error
        driver.abort.assert_called_once_with()

    def test_payload_length_out_of_range(self, make_bridge, handler, driver):
        bridge = make_bridge(handler)

        outcome = bridge.framework_message(driver, b"abc", 10)

        assert handler.calls == []
        assert outcome.is_translation_failure
        driver.abort.assert_called_once_with()

    def test_error_event_translation_failure(self, make_bridge, handler, driver):
        bridge = make_bridge(handler)

        outcome = bridge.error(driver, 12345)

        assert handler.calls == []
        assert outcome.is_translation_failure
        assert not outcome.aborted
        driver.abort.assert_not_called()


class TestCallScopes:
    """Every object created for a call is released on every path."""

    def test_released_on_success(self, make_bridge, handler, driver, scopes, task_info):
        bridge = make_bridge(handler)

        bridge.launch_task(driver, task_info)

        assert len(scopes.scopes) == 1
        assert scopes.scopes[0].released
        assert scopes.scopes[0].objects == ()

    def test_released_on_invocation_failure(self, make_bridge, driver, scopes, task_info):
        bridge = make_bridge(FailingHandler())

        bridge.launch_task(driver, task_info)

        assert scopes.scopes[0].released

    def test_released_on_translation_failure(
        self, make_bridge, handler, driver, scopes, executor_info, node_info
    ):
        bridge = make_bridge(handler)

        bridge.registered(driver, executor_info, {"user": "root"}, node_info)

        assert scopes.scopes[0].released
        assert scopes.scopes[0].objects == ()

    def test_one_scope_per_call(self, make_bridge, handler, driver, scopes):
        bridge = make_bridge(handler)

        bridge.disconnected(driver)
        bridge.shutdown(driver)

        assert len(scopes.scopes) == 2
        assert all(scope.released for scope in scopes.scopes)


class TestOrderingAndLocking:
    """Callbacks run one at a time, in delivery order, under the lock."""

    def test_handler_runs_under_lock(self, make_bridge, driver, lock):
        observed = []

        class LockObservingHandler:
            def shutdown(self, driver):
                observed.append(lock.held_by_current_thread())

        bridge = make_bridge(LockObservingHandler())

        bridge.shutdown(driver)

        assert observed == [True]
        assert lock.depth == 0

    def test_no_overlap_across_threads(self, make_bridge, driver):
        active = []
        overlaps = []

        class SlowHandler:
            def killTask(self, driver, task_id):
                active.append(task_id.value)
                if len(active) > 1:
                    overlaps.append(list(active))
                time.sleep(0.01)
                active.remove(task_id.value)

        bridge = make_bridge(SlowHandler())
        threads = [
            threading.Thread(target=bridge.kill_task, args=(driver, f"task-{i}"))
            for i in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlaps == []
        driver.abort.assert_not_called()

    def test_delivery_order_preserved(self, make_bridge, handler, driver):
        bridge = make_bridge(handler)

        for i in range(5):
            bridge.kill_task(driver, f"task-{i}")

        assert [call[2].value for call in handler.calls] == [f"task-{i}" for i in range(5)]

    def test_torn_down_lock_raises(self, make_bridge, handler, driver, lock):
        bridge = make_bridge(handler)
        lock.teardown()

        with pytest.raises(ExecutionContextTornDown):
            bridge.shutdown(driver)

        assert handler.calls == []
        driver.abort.assert_not_called()


class TestDriverToken:
    """Handlers reply to the driver through their self-token."""

    def test_status_update_from_inside_callback(self, make_bridge, driver, lock):
        class ReplyingHandler:
            def launchTask(self, token, task):
                token.sendStatusUpdate(
                    {"task_id": {"value": task.task_id.value}, "state": "TASK_RUNNING"}
                )

        bridge = make_bridge(ReplyingHandler())

        outcome = bridge.launch_task(driver, {
            "name": "t",
            "task_id": {"value": "task-1"},
            "node_id": {"value": "node-1"},
        })

        assert outcome.success
        update = driver.sendStatusUpdate.call_args[0][0]
        assert update["task_id"] == {"value": "task-1"}
        assert update["state"] == TaskState.TASK_RUNNING.value

    def test_invalid_status_fails_the_callback(self, make_bridge, driver):
        class BadReplyHandler:
            def shutdown(self, token):
                token.sendStatusUpdate({"state": "TASK_RUNNING"})

        bridge = make_bridge(BadReplyHandler())

        outcome = bridge.shutdown(driver)

        assert outcome.is_invocation_failure
        assert "TaskStatus" in outcome.error
        driver.sendStatusUpdate.assert_not_called()
        driver.abort.assert_called_once_with()

    def test_framework_message_reply(self, make_bridge, driver):
        class EchoHandler:
            def frameworkMessage(self, token, message):
                token.sendFrameworkMessage(message)

        bridge = make_bridge(EchoHandler())

        bridge.framework_message(driver, b"\x00ping\x00")

        driver.sendFrameworkMessage.assert_called_once_with(b"\x00ping\x00")

    def test_token_abort(self, make_bridge, driver):
        class GiveUpHandler:
            def shutdown(self, token):
                token.abort()

        bridge = make_bridge(GiveUpHandler())

        outcome = bridge.shutdown(driver)

        assert outcome.success
        driver.abort.assert_called_once_with()

    def test_callback_driver_bound_to_unbound_token(self, lock):
        """A bridge built without a driver replies through the callback's driver."""

        class EchoHandler:
            def frameworkMessage(self, token, message):
                token.sendFrameworkMessage(message)

        callback_driver = Mock(name="callback_driver")
        bridge = ExecutorCallbackBridge(EchoHandler(), lock=lock)

        outcome = bridge.framework_message(callback_driver, b"\x00pong")

        assert outcome.success
        assert bridge.token.driver is callback_driver
        callback_driver.sendFrameworkMessage.assert_called_once_with(b"\x00pong")

    def test_constructed_driver_not_replaced(self, make_bridge, handler, driver):
        bridge = make_bridge(handler)

        bridge.shutdown(Mock(name="other_driver"))

        assert bridge.token.driver is driver

    def test_unbound_token(self, lock):
        bridge = ExecutorCallbackBridge(LaunchOnlyHandler(), lock=lock)

        with pytest.raises(DriverNotBoundError):
            bridge.token.sendFrameworkMessage(b"x")

    def test_token_status_translation_error_outside_callback(self, make_bridge, handler):
        bridge = make_bridge(handler)

        with pytest.raises(TranslationError):
            bridge.token.sendStatusUpdate({"task_id": {"value": "t"}, "state": "TASK_DANCING"})


class TestCoroutineHandlers:
    """Coroutine handler methods are driven to completion."""

    def test_async_handler(self, make_bridge, driver):
        seen = []

        class AsyncHandler:
            async def killTask(self, token, task_id):
                await asyncio.sleep(0)
                seen.append(task_id.value)

        bridge = make_bridge(AsyncHandler())

        outcome = bridge.kill_task(driver, "task-3")

        assert outcome.success
        assert seen == ["task-3"]

    def test_async_handler_failure_aborts(self, make_bridge, driver):
        class AsyncFailingHandler:
            async def shutdown(self, token):
                raise RuntimeError("async failure")

        bridge = make_bridge(AsyncFailingHandler())

        outcome = bridge.shutdown(driver)

        assert outcome.is_invocation_failure
        assert "async failure" in outcome.error
        driver.abort.assert_called_once_with()


class TestBridgeLifecycle:
    """Closing the bridge and building it from configuration."""

    def test_closed_bridge_fails_and_aborts(self, make_bridge, handler, driver):
        bridge = make_bridge(handler)

        bridge.close()
        outcome = bridge.shutdown(driver)

        assert bridge.handle.released
        assert handler.calls == []
        assert outcome.is_invocation_failure
        assert "released" in outcome.error
        driver.abort.assert_called_once_with()

    def test_close_after_teardown(self, make_bridge, handler, lock):
        bridge = make_bridge(handler)
        lock.teardown()

        bridge.close()

        assert bridge.handle.released

    def test_create_bridge_from_file(self, tmp_path, handler, driver):
        config_file = tmp_path / "bridge.yaml"
        config_file.write_text(
            "log_dispatches: false\n"
            "logging:\n"
            "  level: WARNING\n"
            "diagnostics:\n"
            "  stream: none\n"
        )

        try:
            bridge = create_bridge(handler, driver=driver, config_file=config_file)

            assert not bridge.config.log_dispatches
            assert bridge.config.logging.level == "WARNING"
            assert bridge.config.diagnostics.get_stream() is None
            assert bridge.token.driver is driver
        finally:
            shutdown_execbridge_logging()

    def test_create_bridge_without_logging(self, handler):
        bridge = create_bridge(handler, setup_logging=False)

        assert isinstance(bridge, ExecutorCallbackBridge)
        assert bridge.token.driver is None

    def test_outcome_serializes(self, make_bridge, driver):
        bridge = make_bridge(LaunchOnlyHandler())

        outcome = bridge.shutdown(driver)
        data = outcome.to_dict()

        assert data["event"] == "shutdown"
        assert data["failure_kind"] == "invocation"
        assert data["aborted"] is True
        assert isinstance(outcome.error, str)


def test_invocation_failure_keeps_cause(make_bridge, driver, task_info, caplog):
    bridge = make_bridge(FailingHandler())

    with caplog.at_level("ERROR", logger="execbridge"):
        bridge.launch_task(driver, task_info)

    failures = [
        record.exc_info[1]
        for record in caplog.records
        if record.exc_info and isinstance(record.exc_info[1], InvocationFailure)
    ]
    assert len(failures) == 1
    assert isinstance(failures[0].cause, RuntimeError)
