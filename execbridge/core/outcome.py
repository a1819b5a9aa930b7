"""CallOutcome - result of dispatching one driver event."""

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

from dataclasses import dataclass
from typing import Optional

from dataclasses_json import dataclass_json

FAILURE_TRANSLATION = "translation"
FAILURE_INVOCATION = "invocation"


@dataclass_json
@dataclass
class CallOutcome:
    """Outcome of one callback, consumed by the abort policy."""

    event: str
    call_id: str
    success: bool
    failure_kind: Optional[str] = None
    error: Optional[str] = None
    aborted: bool = False
    duration_ms: int = 0

    @property
    def is_translation_failure(self) -> bool:
        return self.failure_kind == FAILURE_TRANSLATION

    @property
    def is_invocation_failure(self) -> bool:
        return self.failure_kind == FAILURE_INVOCATION
