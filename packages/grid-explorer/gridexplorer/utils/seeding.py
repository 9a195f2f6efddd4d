"""Seeding infrastructure for reproducible simulations.

Every random draw in a simulation (obstacle and reward placement, epsilon
branch selection, novelty-weighted sampling) comes from one seeded numpy
Generator, so a run is reproduced by reusing its seed.

Usage:
    # Auto-generate seed if not provided
    seed = ensure_seed(user_seed)

    # Create a seeded numpy RNG for the simulation
    rng = get_rng(seed)
"""

import secrets

import numpy as np

# Maximum seed value (2^32 - 1, compatible with numpy)
MAX_SEED = 2**32


def generate_seed() -> int:
    """Generate a cryptographically random seed.

    Returns
    -------
        A random integer in [0, 2^32)
    """
    return secrets.randbelow(MAX_SEED)


def ensure_seed(seed: int | None = None) -> int:
    """Ensure a seed is available, generating one if not provided.

    Args:
        seed: User-provided seed, or None to auto-generate

    Returns
    -------
        The provided seed or a newly generated one
    """
    if seed is not None:
        return seed
    return generate_seed()


def get_rng(seed: int | None = None) -> np.random.Generator:
    """Create a seeded numpy random number Generator.

    Args:
        seed: Seed for the RNG, or None to use a random seed

    Returns
    -------
        A numpy Generator instance seeded with the given seed
    """
    actual_seed = ensure_seed(seed)
    return np.random.default_rng(actual_seed)
