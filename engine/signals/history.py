"""
Bounded, insertion-ordered history of recent signals with FIFO eviction and
time-window queries. Producers may submit out-of-order timestamps, so window
queries are a linear filter over the buffer rather than a bisect.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterator, List

from engine.errors import ValidationError
from engine.signals.models import Signal, validate_signal

log = logging.getLogger(__name__)


def _check_capacity(capacity: int) -> int:
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        raise ValidationError(f"history capacity must be a positive integer, got {capacity!r}")
    return capacity


class SignalHistory:
    def __init__(self, capacity: int) -> None:
        self._capacity = _check_capacity(capacity)
        self._signals: Deque[Signal] = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, signal: Signal) -> None:
        validate_signal(signal)
        self._signals.append(signal)
        self.evict_if_over_capacity()

    def evict_if_over_capacity(self) -> int:
        evicted = 0
        while len(self._signals) > self._capacity:
            self._signals.popleft()
            evicted += 1
        if evicted:
            log.debug("Evicted %d signal(s) from history (capacity=%d)", evicted, self._capacity)
        return evicted

    def resize(self, capacity: int) -> int:
        self._capacity = _check_capacity(capacity)
        return self.evict_if_over_capacity()

    def window_since(self, now: float, duration: float) -> List[Signal]:
        return self.in_window(now - duration, now)

    def in_window(self, start: float, end: float) -> List[Signal]:
        return [s for s in self._signals if start <= s.produced_at <= end]

    def recent(self, limit: int) -> List[Signal]:
        if limit <= 0:
            return []
        size = len(self._signals)
        return [self._signals[i] for i in range(max(0, size - limit), size)]

    def list_all(self) -> List[Signal]:
        return list(self._signals)

    def utilization(self) -> float:
        return len(self._signals) / self._capacity * 100.0

    def clear(self) -> None:
        self._signals.clear()

    def __len__(self) -> int:
        return len(self._signals)

    def __iter__(self) -> Iterator[Signal]:
        return iter(list(self._signals))
