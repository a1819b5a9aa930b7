"""
Shared fixtures for the executor callback bridge tests.
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

from unittest.mock import Mock

import pytest

from execbridge.config.bridge_config import BridgeConfig
from execbridge.integration.bridge import ExecutorCallbackBridge
from execbridge.integration.callbacks import CallScope
from execbridge.integration.context_lock import ExecutionContextLock


class RecordingHandler:
    """Handler implementing every executor method and recording each call."""

    def __init__(self):
        self.calls = []

    def registered(self, driver, executor_info, framework_info, node_info):
        self.calls.append(("registered", driver, executor_info, framework_info, node_info))

    def reregistered(self, driver, node_info):
        self.calls.append(("reregistered", driver, node_info))

    def disconnected(self, driver):
        self.calls.append(("disconnected", driver))

    def launchTask(self, driver, task):
        self.calls.append(("launchTask", driver, task))

    def killTask(self, driver, task_id):
        self.calls.append(("killTask", driver, task_id))

    def frameworkMessage(self, driver, message):
        self.calls.append(("frameworkMessage", driver, message))

    def shutdown(self, driver):
        self.calls.append(("shutdown", driver))

    def error(self, driver, message):
        self.calls.append(("error", driver, message))

    def names(self):
        return [call[0] for call in self.calls]


class RecordingScopeFactory:
    """Scope factory that keeps every scope it hands out."""

    def __init__(self):
        self.scopes = []

    def __call__(self):
        scope = CallScope()
        self.scopes.append(scope)
        return scope


@pytest.fixture
def executor_info():
    return {
        "executor_id": {"value": "executor-1"},
        "framework_id": {"value": "framework-1"},
        "command": {"value": "/usr/bin/run-executor", "shell": False, "arguments": ["--fast"]},
        "resources": [{"name": "cpus", "type": "SCALAR", "scalar": 0.5}],
        "name": "test executor",
    }


@pytest.fixture
def framework_info():
    return {
        "user": "root",
        "name": "test framework",
        "id": {"value": "framework-1"},
        "checkpoint": True,
    }


@pytest.fixture
def node_info():
    return {
        "hostname": "node-1.cluster.local",
        "port": 5051,
        "id": {"value": "node-1"},
        "resources": [
            {"name": "ports", "type": "RANGES", "ranges": [{"begin": 31000, "end": 32000}]}
        ],
        "attributes": [{"name": "rack", "type": "TEXT", "text": "r1"}],
    }


@pytest.fixture
def task_info():
    return {
        "name": "task one",
        "task_id": {"value": "task-1"},
        "node_id": {"value": "node-1"},
        "resources": [{"name": "mem", "type": "SCALAR", "scalar": 128.0}],
        "command": {"value": "echo hello"},
        "data": b"\x00payload\x00",
    }


@pytest.fixture
def driver():
    return Mock(name="driver")


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def scopes():
    return RecordingScopeFactory()


@pytest.fixture
def lock():
    return ExecutionContextLock(name="test-runtime")


@pytest.fixture
def make_bridge(driver, lock, scopes):
    """Build a bridge around a handler with a private lock and recorded scopes."""

    def _make(handler, **kwargs):
        kwargs.setdefault("driver", driver)
        kwargs.setdefault("lock", lock)
        kwargs.setdefault("scope_factory", scopes)
        kwargs.setdefault("config", BridgeConfig())
        return ExecutorCallbackBridge(handler, **kwargs)

    return _make
