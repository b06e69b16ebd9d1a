from typing import Iterable

from config import LCG_INCREMENT, LCG_MODULUS, LCG_MULTIPLIER


def seed_from_tickers(tickers: Iterable[str]) -> int:
    """
    Sum of the code point of each ticker's first character.
    Empty tickers contribute 0. Only first characters matter, so
    reordering or swapping tickers that share an initial keeps the seed.
    """
    return sum(ord(t[0]) for t in tickers if t)


class SeededRandom:
    """
    Linear congruential generator: state = (state * 9301 + 49297) % 233280.
    Each instance owns its state; draws are floats in [0, 1).
    """

    def __init__(self, seed: int):
        self.state = seed

    def next(self) -> float:
        self.state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self.state / LCG_MODULUS
