import random
from typing import Optional, Protocol

MULTIPLIER_MIN = 1000
MULTIPLIER_MAX = 2000


class RandomSource(Protocol):
    def random(self) -> float: ...


def draw_multiplier(rng: Optional[RandomSource] = None) -> float:
    """Uniform multiplier in [MULTIPLIER_MIN, MULTIPLIER_MAX)."""
    source = rng if rng is not None else random
    return MULTIPLIER_MIN + source.random() * (MULTIPLIER_MAX - MULTIPLIER_MIN)


def estimate_gdp(population: int, exchange_rate: float, rng: Optional[RandomSource] = None) -> float:
    """Rough GDP proxy: population * random multiplier / exchange rate.

    Not reproducible between calls unless the caller passes its own ``rng``.
    """
    if exchange_rate is None or exchange_rate <= 0:
        raise ValueError(f"exchange_rate must be positive, got {exchange_rate!r}")
    if population < 0:
        raise ValueError(f"population must be non-negative, got {population!r}")
    return (population * draw_multiplier(rng)) / exchange_rate
