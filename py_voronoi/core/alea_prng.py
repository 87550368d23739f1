"""
Alea pseudo-random generator.

Johannes Baagøe's Alea algorithm: a small, seedable generator that gives
the same sequence for the same seed on every platform. Site jitter and
random site sets draw from it so that a seed fully determines a diagram.
"""

TWO_POW_32 = 0x100000000
TWO_POW_NEG_32 = 2.3283064365386963e-10


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class _Mash:
    """String hash used to turn seed values into generator state."""

    def __init__(self):
        self.n = 0xEFC8249D

    def __call__(self, data) -> float:
        for char in str(data):
            self.n += ord(char)
            h = 0.02519603282416938 * self.n
            self.n = _uint32(h)
            h -= self.n
            h *= self.n
            self.n = _uint32(h)
            h -= self.n
            self.n += h * TWO_POW_32
        return _uint32(self.n) * TWO_POW_NEG_32


class AleaPRNG:
    """Seeded generator producing floats in [0, 1)."""

    def __init__(self, seed):
        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            parts = list(seed)
        else:
            parts = [seed]

        mash = _Mash()
        state = [mash(" "), mash(" "), mash(" ")]
        for part in parts:
            for i in range(3):
                state[i] -= mash(part)
                if state[i] < 0:
                    state[i] += 1
        self.s0, self.s1, self.s2 = state
        self.c = 1
        self.seed = seed

    def random(self) -> float:
        """Next value in [0, 1)."""
        t = 2091639 * self.s0 + self.c * TWO_POW_NEG_32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def uniform(self, low: float, high: float) -> float:
        """Next value in [low, high)."""
        return low + (high - low) * self.random()
