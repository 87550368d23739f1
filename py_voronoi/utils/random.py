"""
Random number generation utilities.

All randomness in py_voronoi (duplicate jitter, random site sets) goes
through one process-wide Alea generator so that runs are reproducible
from a seed. Python's random and NumPy's random are not used.
"""

from typing import Optional

from ..config import settings
from ..core.alea_prng import AleaPRNG

# Global PRNG instance
_prng: Optional[AleaPRNG] = None


def set_random_seed(seed: str) -> None:
    """
    Reseed the shared Alea generator.

    Args:
        seed: Seed string to use
    """
    global _prng
    _prng = AleaPRNG(seed)


def get_prng() -> AleaPRNG:
    """
    Get the shared Alea generator, creating it from the configured
    default seed on first use.

    Returns:
        AleaPRNG instance
    """
    global _prng
    if _prng is None:
        _prng = AleaPRNG(settings.default_seed)
    return _prng
