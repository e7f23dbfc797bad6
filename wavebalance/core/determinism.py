"""
Determinism helpers.

Goals:
- Every stochastic step (wave refinement) takes an explicit random.Random.
- Stable per-purpose sub-streams from one base seed, so the "run" stream and a
  "what-if" rerun do not share call-order coupling.

Non-goals:
- Cryptographic security
"""

from __future__ import annotations

import random
import zlib
from typing import Optional


def derive_seed(base_seed: int, tag: str) -> int:
    # crc32, not hash(): hash() is randomized per process
    crc = zlib.crc32(tag.encode("utf-8")) & 0xFFFFFFFF
    return (int(base_seed) ^ crc) & 0xFFFFFFFF


def make_rng(seed: Optional[int] = None, tag: Optional[str] = None) -> random.Random:
    """
    - seed None: an unseeded generator (fresh OS entropy)
    - seed set, tag None: random.Random(seed)
    - seed and tag: an independent stream derived from the pair
    """
    if seed is None:
        return random.Random()
    if tag is None:
        return random.Random(int(seed) & 0xFFFFFFFF)
    return random.Random(derive_seed(seed, str(tag)))
