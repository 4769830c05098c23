"""
Deterministic Execution Module

Seeding helpers for parameter initialisation and dataset shuffling.

Unlike a production service, the models here draw fresh random parameters
on every training run. Seeds are therefore opt-in: pass an explicit seed to
pin a run, or None for a non-deterministic draw.
"""

from typing import List, Optional

import numpy as np
import torch


def get_random_state(seed: Optional[int] = None) -> np.random.RandomState:
    """
    Get a NumPy RandomState for dataset shuffling.

    Args:
        seed: Seed, or None for an OS-entropy seeded state

    Returns:
        numpy.random.RandomState object
    """
    return np.random.RandomState(seed)


def spawn_seeds(seed: Optional[int], count: int) -> List[Optional[int]]:
    """
    Derive independent child seeds from one run seed.

    Each child seeds one model's parameter draw, so models built in the
    same run never share a random stream.

    Args:
        seed: Run seed, or None for non-deterministic children
        count: Number of child seeds

    Returns:
        List of count seeds (all None when seed is None)
    """
    if seed is None:
        return [None] * count
    return [
        int(child.generate_state(1)[0])
        for child in np.random.SeedSequence(seed).spawn(count)
    ]


def get_torch_generator(seed: Optional[int] = None) -> torch.Generator:
    """
    Get a torch Generator for parameter draws.

    Args:
        seed: Seed, or None for a non-deterministic generator

    Returns:
        torch.Generator on the CPU
    """
    generator = torch.Generator()
    if seed is None:
        generator.seed()
    else:
        generator.manual_seed(seed)
    return generator
