"""
Message marshaller: native driver records to runtime records.

Every call produces freshly owned objects. A translation failure never
raises; it comes back as a ``MarshalResult`` whose value is absent and whose
error explains why, so the dispatcher decides on absence rather than on an
exception path.
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
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ValidationError

from ..core.errors import TranslationError
from ..core.messages import RECORD_KINDS
from .type_conversion import TypeConverter, get_type_converter

logger = logging.getLogger(__name__)

# Kinds whose native form may be a bare identifier string.
IDENTIFIER_KINDS = {"TaskID"}


@dataclass
class MarshalResult:
    """Either a marshalled value or the translation error that prevented it."""

    value: Any = None
    error: Optional[TranslationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MessageMarshaller:
    """Translates native records into runtime records by kind tag."""

    def __init__(self, converter: Optional[TypeConverter] = None):
        self.converter = converter or get_type_converter()
        self._kinds: Dict[str, Type[BaseModel]] = dict(RECORD_KINDS)

    def register_kind(self, tag: str, model: Type[BaseModel]) -> None:
        """Register (or replace) the schema used for ``tag``."""
        self._kinds[tag] = model

    def marshal(self, native_record: Any, kind: str) -> MarshalResult:
        """
        Translate ``native_record`` field by field into the model for ``kind``.

        Args:
            native_record: Record delivered by the driver
            kind: Kind tag naming the target schema

        Returns:
            MarshalResult holding the new record or a TranslationError
        """
        model = self._kinds.get(kind)
        if model is None:
            return MarshalResult(error=TranslationError(kind, "unknown record kind"))

        if native_record is None:
            return MarshalResult(error=TranslationError(kind, "record is missing"))

        if isinstance(native_record, model):
            # Runtime records are immutable, but each call still owns its copy.
            return MarshalResult(value=native_record.model_copy(deep=True))

        if kind in IDENTIFIER_KINDS and isinstance(native_record, str):
            native_record = {"value": native_record}

        try:
            data = self.converter.native_to_record(native_record)
        except Exception as e:
            return MarshalResult(
                error=TranslationError(kind, f"{type(e).__name__}: {e}", cause=e)
            )

        if not isinstance(data, dict):
            return MarshalResult(
                error=TranslationError(
                    kind, f"expected a structured record, got {type(data).__name__}"
                )
            )

        try:
            value = model.model_validate(data)
        except ValidationError as e:
            return MarshalResult(
                error=TranslationError(kind, f"{e.error_count()} schema error(s)\n{e}", cause=e)
            )

        logger.debug(f"Marshalled {kind} record")
        return MarshalResult(value=value)

    def marshal_bytes(self, payload: Any, length: Optional[int] = None) -> MarshalResult:
        """
        Marshal an opaque payload as an exact-length byte string.

        Args:
            payload: bytes, bytearray or memoryview
            length: Number of bytes to take; defaults to the whole buffer

        Returns:
            MarshalResult holding ``bytes`` or a TranslationError
        """
        if not isinstance(payload, (bytes, bytearray, memoryview)):
            return MarshalResult(
                error=TranslationError(
                    "bytes", f"expected a byte buffer, got {type(payload).__name__}"
                )
            )

        buffer = bytes(payload)
        if length is None:
            return MarshalResult(value=buffer)

        if length < 0 or length > len(buffer):
            return MarshalResult(
                error=TranslationError(
                    "bytes", f"length {length} outside buffer of {len(buffer)} bytes"
                )
            )

        return MarshalResult(value=buffer[:length])

    def marshal_text(self, payload: Any, length: Optional[int] = None) -> MarshalResult:
        """
        Marshal an error message payload as text.

        The exact-length bytes are decoded as UTF-8; undecodable sequences are
        replaced, embedded zero bytes are kept. A ``str`` payload is taken as is.
        """
        if isinstance(payload, str):
            if length is not None and (length < 0 or length > len(payload)):
                return MarshalResult(
                    error=TranslationError(
                        "text", f"length {length} outside message of {len(payload)} characters"
                    )
                )
            return MarshalResult(value=payload if length is None else payload[:length])

        result = self.marshal_bytes(payload, length)
        if not result.ok:
            cause = result.error
            return MarshalResult(error=TranslationError("text", str(cause.args[0]), cause=cause))

        return MarshalResult(value=result.value.decode("utf-8", errors="replace"))
