"""
Deterministic seed source for character consistency.

Replaying the same construction order reproduces the same character seeds
across sessions. Stored fixtures depend on the exact recurrence below.
"""

from __future__ import annotations

DEFAULT_SEED_STATE = 42

LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_MODULUS = 2147483647


class SeededRandomSource:
    """Integer seed generator: ``state = (state * a + c) mod (2**31 - 1)``."""

    def __init__(self, state: int = DEFAULT_SEED_STATE):
        self._state = int(state)
        self._draws = 0

    @property
    def state(self) -> int:
        return self._state

    @property
    def draws(self) -> int:
        """Number of values produced so far."""
        return self._draws

    def next(self) -> int:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        self._draws += 1
        return self._state

    def take(self, count: int) -> list[int]:
        return [self.next() for _ in range(count)]

    def __repr__(self) -> str:
        return f"SeededRandomSource(state={self._state}, draws={self._draws})"
