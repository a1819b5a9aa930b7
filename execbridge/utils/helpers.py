#!/usr/bin/env python3
"""
Helper utilities for common functionality.

Provides call ID generation, timing and log-safe rendering of payloads.
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
import re
import time
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any


def generate_call_id() -> str:
    """Generate a unique ID for tracking a single driver callback."""
    timestamp = int(time.time() * 1000)  # Milliseconds
    unique_id = str(uuid.uuid4()).replace("-", "")[:12]
    return f"{timestamp}-{unique_id}"


def is_valid_call_id(call_id: str) -> bool:
    """
    Validate call ID format.

    Args:
        call_id: Call ID to validate

    Returns:
        True if valid format
    """
    if not call_id or not isinstance(call_id, str):
        return False

    parts = call_id.split("-")
    if len(parts) != 2:
        return False

    try:
        int(parts[0])
        return parts[1].isalnum() and len(parts[1]) == 12
    except ValueError:
        return False


def get_current_timestamp_ms() -> int:
    """Get current timestamp in milliseconds."""
    return int(time.time() * 1000)


def format_duration_ms(duration_ms: int) -> str:
    """
    Format duration in milliseconds to human-readable string.

    Args:
        duration_ms: Duration in milliseconds

    Returns:
        Formatted duration string
    """
    if duration_ms < 1000:
        return f"{duration_ms}ms"
    elif duration_ms < 60000:
        return f"{duration_ms / 1000:.1f}s"
    elif duration_ms < 3600000:
        minutes = duration_ms // 60000
        seconds = (duration_ms % 60000) // 1000
        return f"{minutes}m {seconds}s"
    else:
        hours = duration_ms // 3600000
        minutes = (duration_ms % 3600000) // 60000
        return f"{hours}h {minutes}m"


def preview_bytes(payload: bytes, max_bytes: int = 64) -> str:
    """Render an opaque payload for logs; embedded NULs and non-ASCII are escaped."""
    shown = bytes(payload[:max_bytes])
    rendered = shown.hex(" ")
    if len(payload) > max_bytes:
        rendered += f" ... ({len(payload)} bytes)"
    return rendered


class SafeJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles non-serializable objects safely."""

    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        elif isinstance(obj, Decimal):
            return float(obj)
        elif isinstance(obj, (bytes, bytearray)):
            return preview_bytes(obj)
        elif hasattr(obj, "model_dump"):
            return obj.model_dump()
        elif hasattr(obj, "__dict__"):
            return obj.__dict__
        else:
            return str(obj)


def safe_json_dumps(obj: Any, **kwargs) -> str:
    """
    Safely serialize an object to JSON string.

    Handles non-serializable objects by converting them to strings.
    """
    try:
        return json.dumps(obj, cls=SafeJSONEncoder, **kwargs)
    except (TypeError, ValueError):
        return json.dumps({"error": "serialization_failed", "repr": str(obj)})


def sanitize_for_logging(data: Any, max_length: int = 1000) -> str:
    """
    Sanitize data for safe logging.

    Args:
        data: Data to sanitize
        max_length: Maximum length of output string

    Returns:
        Sanitized string safe for logging
    """
    if isinstance(data, str):
        result = data
    else:
        result = safe_json_dumps(data)

    if len(result) > max_length:
        result = result[: max_length - 3] + "..."

    # Redact values of secret-looking keys
    for pattern in ("password", "secret", "token", "principal"):
        if pattern in result.lower():
            pattern_regex = rf'("[^"]*{pattern}[^"]*"\s*:\s*")([^"]*)'
            result = re.sub(pattern_regex, r"\1[REDACTED]", result, flags=re.IGNORECASE)

    return result
