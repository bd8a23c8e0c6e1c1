"""Time and identifier sources injected into the product registry."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_product_id() -> str:
    """Return a collision-free identifier for a new product."""

    return str(uuid.uuid4())


class MonotonicClock:
    """Wall clock that never moves backwards between consecutive readings."""

    def __init__(self, source: Callable[[], datetime] | None = None) -> None:
        self._source = source or utc_now
        self._last: datetime | None = None

    def __call__(self) -> datetime:
        now = self._source()
        if self._last is not None and now < self._last:
            now = self._last
        self._last = now
        return now
