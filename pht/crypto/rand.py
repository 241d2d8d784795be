"""Random sources.

Every function that needs randomness takes an explicit ``rng`` argument: any
``random.Random`` compatible object (only ``getrandbits`` is used). Production
code passes nothing and gets ``secrets.SystemRandom``, which reads the OS
CSPRNG and is safe to share between threads. Tests may pass a seeded
``random.Random`` for reproducible runs; such a source is NOT suitable for
real keys.
"""

from __future__ import annotations

import random
import secrets
from typing import Optional

# width of the seeds handed to worker processes
_CHILD_SEED_BITS = 256


def default_rng() -> random.Random:
    return secrets.SystemRandom()


def ensure_rng(rng: Optional[random.Random]) -> random.Random:
    return default_rng() if rng is None else rng


def child_seed(rng: random.Random) -> Optional[int]:
    """Seed material for a worker's independent stream.

    ``None`` means "draw from the OS": a SystemRandom parent has no state to
    derive from, and each worker process reading the OS CSPRNG already gets an
    independent stream. Seeded parents hand out fresh seeds drawn from their
    own stream so that a run stays reproducible.
    """
    if isinstance(rng, random.SystemRandom):
        return None
    return rng.getrandbits(_CHILD_SEED_BITS)


def rng_from_seed(seed: Optional[int]) -> random.Random:
    if seed is None:
        return default_rng()
    return random.Random(seed)


__all__ = ["default_rng", "ensure_rng", "child_seed", "rng_from_seed"]
