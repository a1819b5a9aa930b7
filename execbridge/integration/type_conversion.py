"""
Type conversion utilities between driver-native data and runtime records.

Driver records arrive in whatever shape the driver binding produces:
mappings, dataclasses, pydantic models, or objects that know how to render
themselves with ``to_dict()``. This module flattens them into plain Python
data before schema validation, and turns runtime records back into plain data
when a handler replies through the driver.
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
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class TypeConverter:
    """
    Converts between driver-native values and plain Python data.

    Plain data means ``None``, ``bool``, ``int``, ``float``, ``str``,
    ``bytes`` and lists/dicts of those. Byte payloads are passed through
    untouched so their length and embedded zero bytes survive.
    """

    def native_to_record(self, value: Any) -> Any:
        """
        Flatten a native value into plain data suitable for schema validation.

        Args:
            value: Value delivered by the driver

        Returns:
            Plain-data equivalent

        Raises:
            TypeError: if the value has no plain-data rendering
        """
        if value is None or isinstance(value, (bool, int, float, str, bytes)):
            return value

        if isinstance(value, (bytearray, memoryview)):
            return bytes(value)

        if isinstance(value, Enum):
            return value.value

        if isinstance(value, Mapping):
            return {str(k): self.native_to_record(v) for k, v in value.items()}

        if isinstance(value, (list, tuple)):
            return [self.native_to_record(item) for item in value]

        if isinstance(value, BaseModel):
            return self.native_to_record(value.model_dump(exclude_unset=True))

        if is_dataclass(value) and not isinstance(value, type):
            if hasattr(value, "to_dict"):
                return self.native_to_record(value.to_dict())
            return {
                field.name: self.native_to_record(getattr(value, field.name))
                for field in fields(value)
            }

        if hasattr(value, "to_dict"):
            return self.native_to_record(value.to_dict())

        raise TypeError(f"Cannot convert object of type {type(value).__name__} to a record")

    def record_to_native(self, value: Any) -> Any:
        """
        Render a runtime record as plain data for the driver.

        Args:
            value: Runtime record (usually a pydantic model)

        Returns:
            Plain-data equivalent with enums reduced to their values
        """
        if isinstance(value, BaseModel):
            return self.record_to_native(value.model_dump(exclude_none=True))

        if isinstance(value, Enum):
            return value.value

        if isinstance(value, dict):
            return {k: self.record_to_native(v) for k, v in value.items()}

        if isinstance(value, (list, tuple)):
            return [self.record_to_native(item) for item in value]

        return value


_type_converter = TypeConverter()


def get_type_converter() -> TypeConverter:
    """Get the global type converter instance."""
    return _type_converter
