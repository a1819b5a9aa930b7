"""Utility helpers for the executor callback bridge."""

from .helpers import (
    format_duration_ms,
    generate_call_id,
    get_current_timestamp_ms,
    preview_bytes,
    sanitize_for_logging,
)
from .logging import dispatch_context, get_bridge_context, get_call_context, get_event_context

__all__ = [
    "format_duration_ms",
    "generate_call_id",
    "get_current_timestamp_ms",
    "preview_bytes",
    "sanitize_for_logging",
    "dispatch_context",
    "get_bridge_context",
    "get_call_context",
    "get_event_context",
]
