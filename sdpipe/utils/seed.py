# sdpipe/utils/seed.py

from __future__ import annotations
import torch

# Largest seed a torch.Generator / unsigned 32-bit engine seed accepts
MAX_SEED = 2**32 - 1


def random_seed(max_seed: int = MAX_SEED) -> int:
    """
    Draw a seed uniformly from [0, max_seed], both ends included.
    """
    if max_seed < 0:
        raise ValueError(f"max_seed must be non-negative, got {max_seed}")
    # randint's upper bound is exclusive
    return int(torch.randint(0, max_seed + 1, ()).item())
