"""Mini README: Time-ordered identifiers for records created with ``push``.

Identifiers are 20 characters: eight encode the creation time in
milliseconds and twelve are random. Within the same millisecond the random
part is incremented so keys stay strictly ordered.
"""

from __future__ import annotations

import random
import time
from typing import Callable, List, Optional

PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"


class PushIdGenerator:
    """Generate lexicographically sortable record keys."""

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._clock = clock
        self._rng = rng or random.Random()
        self._last_millis = -1
        self._last_random: List[int] = [0] * 12

    def __call__(self) -> str:
        now = int(self._clock() * 1000)
        if now == self._last_millis:
            for index in range(11, -1, -1):
                if self._last_random[index] != 63:
                    self._last_random[index] += 1
                    break
                self._last_random[index] = 0
        else:
            self._last_random = [self._rng.randrange(64) for _ in range(12)]
        self._last_millis = now

        timestamp_chars = []
        remaining = now
        for _ in range(8):
            timestamp_chars.append(PUSH_CHARS[remaining % 64])
            remaining //= 64
        prefix = "".join(reversed(timestamp_chars))
        return prefix + "".join(PUSH_CHARS[value] for value in self._last_random)
