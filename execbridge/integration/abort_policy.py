"""
Abort policy for failed callbacks.

A dispatch failure on any event aborts the driver, immediately and exactly
once, with no retry. The ``error`` event is the one exception: reporting an
error must never abort, or the abort could itself come back as another error.
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

from ..core.events import DriverEvent
from ..core.outcome import CallOutcome

logger = logging.getLogger(__name__)


class AbortPolicy:
    """Turns a call outcome into abort-or-continue."""

    def should_abort(self, event: DriverEvent, outcome: CallOutcome) -> bool:
        return not outcome.success and event.aborts_on_failure

    def apply(self, event: DriverEvent, outcome: CallOutcome, driver) -> bool:
        """
        Abort the driver if the outcome calls for it.

        Args:
            event: Event that was dispatched
            outcome: Outcome of the dispatch; ``aborted`` is updated in place
            driver: Driver to abort

        Returns:
            True if the driver was asked to abort
        """
        if outcome.success:
            return False

        if not self.should_abort(event, outcome):
            logger.warning(
                f"Callback {event.value} failed; not aborting driver for the {event.value} event",
                extra={"failure_kind": outcome.failure_kind},
            )
            return False

        logger.error(
            f"Callback {event.value} failed ({outcome.failure_kind}); aborting driver",
            extra={"failure_kind": outcome.failure_kind},
        )
        outcome.aborted = True
        try:
            driver.abort()
        except Exception as e:
            # The driver only observes abort-or-continue; its own failure to abort stays here.
            logger.error(f"Driver abort raised: {e}", exc_info=True)
        return True
