"""Last-selection-wins bookkeeping for concurrent chart queries.

Each chart owns a result slot (``"age"``, ``"gender"``, ...).  Requests
for different slots are independent and may run concurrently.  Within a
slot, every request is tagged with an increasing token; when a result
arrives it is stored only if no newer request for that slot has been
issued in the meantime, so a slow, stale projection can never overwrite
the answer for the current selection.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class SelectionSequencer:
    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._latest: Dict[str, int] = {}
        self._results: Dict[str, Any] = {}

    def begin(self, slot: str) -> int:
        """Register a new request for ``slot`` and return its token."""
        token = next(self._counter)
        self._latest[slot] = token
        return token

    def is_current(self, slot: str, token: int) -> bool:
        return self._latest.get(slot) == token

    def complete(self, slot: str, token: int, result: Any) -> bool:
        """Store ``result`` if ``token`` is still the newest for ``slot``."""
        if not self.is_current(slot, token):
            logger.debug("Discarding stale result for %s (token %d)", slot, token)
            return False
        self._results[slot] = result
        return True

    def result(self, slot: str, default: Optional[Any] = None) -> Any:
        return self._results.get(slot, default)

    async def submit(self, slot: str, func: Callable[..., Any], *args: Any) -> bool:
        """Run ``func(*args)`` in a worker thread and store its result.

        Returns ``True`` if the result was stored, ``False`` if a newer
        request for the same slot was issued before it finished.
        """
        token = self.begin(slot)
        result = await asyncio.to_thread(func, *args)
        return self.complete(slot, token, result)
