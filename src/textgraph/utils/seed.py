"""Seed helpers for the randomly initialised GAT parameters"""
from typing import Optional, Tuple

import torch


def make_generator(seed: Optional[int] = None) -> Tuple[torch.Generator, int]:
    """Return a CPU generator and the seed it was started from.

    With ``seed=None`` a non-deterministic seed is drawn, so every call gets
    different weights.
    """
    gen = torch.Generator()
    if seed is None:
        effective = gen.seed()
    else:
        effective = int(seed)
        gen.manual_seed(effective)
    return gen, effective
