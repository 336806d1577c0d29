from __future__ import annotations

"""Randomness helpers: explicit random sources and uniform shuffling."""

import os
import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Return a private random source.

    Falls back to the SEED env var when no seed is given, so a whole CLI run can
    be reproduced without touching the global RNG.
    """
    if seed is None:
        env_seed = os.environ.get("SEED")
        if env_seed is not None:
            try:
                seed = int(env_seed)
            except ValueError:
                seed = None
    return random.Random(seed)


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy of items (Fisher-Yates, last index down to 1)."""
    rng = rng or random.Random()
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def sample(items: Sequence[T], k: int, rng: Optional[random.Random] = None) -> List[T]:
    """Pick k distinct elements of items in random order."""
    if k < 0 or k > len(items):
        raise ValueError(f"sample size {k} outside 0..{len(items)}")
    return shuffle(items, rng)[:k]
