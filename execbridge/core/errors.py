"""
Exception types raised and recorded by the executor callback bridge.
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

from typing import Optional


class BridgeError(RuntimeError):
    """Base class for all bridge errors."""


class TranslationError(BridgeError):
    """A native record could not be converted into a runtime object."""

    def __init__(self, kind: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to translate {kind}: {message}")
        self.kind = kind
        self.cause = cause
        self.__cause__ = cause


class InvocationFailure(BridgeError):
    """The handler method was missing, not callable, or raised."""

    def __init__(self, method: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to call executor's {method}: {message}")
        self.method = method
        self.cause = cause
        self.__cause__ = cause


class ExecutionContextTornDown(BridgeError):
    """The embedded runtime is being torn down; no callback may enter it."""


class DriverNotBoundError(BridgeError):
    """A handler reply was attempted on a token with no driver attached."""
