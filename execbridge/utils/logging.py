#!/usr/bin/env python3
"""
Logging utilities for dispatch context.

Every log record emitted while a driver callback is being dispatched can carry
the call ID and the event name of that callback.
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
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_call_context: ContextVar[Optional[str]] = ContextVar("call_id", default=None)
_event_context: ContextVar[Optional[str]] = ContextVar("event", default=None)
_bridge_context: ContextVar[Optional[str]] = ContextVar("bridge_id", default=None)


def get_call_context() -> Optional[str]:
    """Get the call ID of the callback being dispatched, if any."""
    return _call_context.get()


def get_event_context() -> Optional[str]:
    """Get the event name of the callback being dispatched, if any."""
    return _event_context.get()


def get_bridge_context() -> Optional[str]:
    """Get the ID of the bridge dispatching the current callback, if any."""
    return _bridge_context.get()


@contextmanager
def dispatch_context(call_id: str, event: str, bridge_id: Optional[str] = None) -> Iterator[None]:
    """Bind call ID, event and bridge ID for the duration of one dispatch."""
    call_token = _call_context.set(call_id)
    event_token = _event_context.set(event)
    bridge_token = _bridge_context.set(bridge_id)
    try:
        yield
    finally:
        _bridge_context.reset(bridge_token)
        _event_context.reset(event_token)
        _call_context.reset(call_token)


class DispatchContextFilter(logging.Filter):
    """Attach the current call ID, event and bridge ID to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "call_id"):
            record.call_id = get_call_context() or "N/A"
        if not hasattr(record, "event"):
            record.event = get_event_context() or "N/A"
        if not hasattr(record, "bridge_id"):
            record.bridge_id = get_bridge_context() or "N/A"
        return True


class DispatchContextFormatter(logging.Formatter):
    """Text formatter that includes call ID and event."""

    def format(self, record):
        if not hasattr(record, "call_id"):
            record.call_id = get_call_context() or "N/A"
        if not hasattr(record, "event"):
            record.event = get_event_context() or "N/A"
        return super().format(record)

