"""
JSON logging formatter for the executor callback bridge.

Every record becomes one JSON line. The dispatch fields (call ID, event,
bridge ID and failure kind) are top-level keys so a single callback can be
followed across the bridge and driver streams; the prefix tells the two
streams apart.
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

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..utils.helpers import SafeJSONEncoder, preview_bytes
from ..utils.logging import get_bridge_context, get_call_context, get_event_context

BRIDGE_PREFIX = "execbridge::bridge::log"
DRIVER_PREFIX = "execbridge::driver::log"

# Top-level keys of every entry, null outside a dispatch.
DISPATCH_FIELDS = ("call_id", "event", "bridge_id", "failure_kind")

# Placeholder set by DispatchContextFilter outside a dispatch.
_UNSET = "N/A"

_STANDARD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class ExecBridgeJSONFormatter(logging.Formatter):
    """
    JSON line formatter for bridge and driver records.

    Dispatch fields come from the record when a caller or filter set them,
    otherwise from the active dispatch context. Any other ``extra`` values are
    nested under ``"extra"``; byte payloads anywhere in them are rendered as a
    hex preview capped at ``payload_bytes``.
    """

    def __init__(
        self,
        prefix: str = BRIDGE_PREFIX,
        include_extra: bool = True,
        include_thread_info: bool = True,
        payload_bytes: int = 64,
    ):
        super().__init__()
        self.prefix = prefix
        self.include_extra = include_extra
        self.include_thread_info = include_thread_info
        self.payload_bytes = payload_bytes

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "prefix": self.prefix,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.filename}:{record.lineno}",
        }
        entry.update(self.dispatch_fields(record))

        if self.include_thread_info:
            entry["thread"] = record.threadName

        if self.include_extra:
            extra = {
                key: self.render_value(value)
                for key, value in record.__dict__.items()
                if key not in _STANDARD_ATTRIBUTES
                and key not in DISPATCH_FIELDS
                and not key.startswith("_")
            }
            if extra:
                entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, separators=(",", ":"), cls=SafeJSONEncoder)

    @staticmethod
    def dispatch_fields(record: logging.LogRecord) -> Dict[str, Optional[str]]:
        context = {
            "call_id": get_call_context(),
            "event": get_event_context(),
            "bridge_id": get_bridge_context(),
            "failure_kind": None,
        }
        fields = {}
        for key in DISPATCH_FIELDS:
            value = getattr(record, key, None)
            fields[key] = context[key] if value in (None, _UNSET) else value
        return fields

    def render_value(self, value: Any) -> Any:
        """Reduce an extra value to JSON-ready data; bytes become a hex preview."""
        if isinstance(value, (bytes, bytearray, memoryview)):
            return preview_bytes(bytes(value), self.payload_bytes)
        if hasattr(value, "model_dump"):
            return self.render_value(value.model_dump())
        if isinstance(value, dict):
            return {str(k): self.render_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.render_value(item) for item in value]
        return value
