from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable

from alert_dispatch.models import RateCounterState

CounterMutator = Callable[[RateCounterState], RateCounterState]


class CounterStore(ABC):
    """Persistence seam for rate counters.

    ``commit_atomic`` must run the mutator as a single read-modify-write: no other
    commit may interleave between reading the state and storing the result.
    """

    @abstractmethod
    async def load(self) -> RateCounterState:
        raise NotImplementedError

    @abstractmethod
    async def commit_atomic(self, mutator: CounterMutator) -> RateCounterState:
        raise NotImplementedError


class InMemoryCounterStore(CounterStore):
    def __init__(self, initial: RateCounterState | None = None) -> None:
        self._state = initial or RateCounterState()
        self._lock = asyncio.Lock()

    async def load(self) -> RateCounterState:
        async with self._lock:
            return self._state

    async def commit_atomic(self, mutator: CounterMutator) -> RateCounterState:
        async with self._lock:
            self._state = mutator(self._state)
            return self._state
