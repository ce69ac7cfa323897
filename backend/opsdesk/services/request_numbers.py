# Overview: Human-readable stock request numbers (SR + YYYYMMDD + 6 base-36 chars).

from __future__ import annotations

import secrets
from typing import Callable

from opsdesk.time_utils import utcnow


ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
SUFFIX_LENGTH = 6
PREFIX = "SR"


class RequestNumberGenerator:
    """
    Builds request numbers from an injected clock and random source.

    clock: zero-arg callable returning a datetime
    rng: object with a choice(seq) method (random.Random, secrets.SystemRandom)
    """

    def __init__(self, clock: Callable | None = None, rng=None):
        self.clock = clock or utcnow
        self.rng = rng or secrets.SystemRandom()

    def __call__(self) -> str:
        stamp = self.clock().strftime("%Y%m%d")
        suffix = "".join(self.rng.choice(ALPHABET) for _ in range(SUFFIX_LENGTH))
        return f"{PREFIX}{stamp}{suffix}"


default_generator = RequestNumberGenerator()
