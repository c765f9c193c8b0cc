"""Reference parity-check matrices with their example channel values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from .matrix import ParityCheckMatrix


@dataclass
class ReferenceCode:
    name: str
    bits: np.ndarray  # (n_c, n_v) 0/1
    llrs: Tuple[float, ...]  # initial channel LLRs, prefix of the variables
    iterations: int = 8

    def matrix(self) -> ParityCheckMatrix:
        return ParityCheckMatrix(self.bits)


def _create_johnson() -> ReferenceCode:
    # Worked example from S. J. Johnson, "Introducing Low-Density
    # Parity-Check Codes", channel values from p. 38.
    bits = np.array(
        [
            [1, 1, 0, 1, 0, 0],
            [0, 1, 1, 0, 1, 0],
            [1, 0, 0, 0, 1, 1],
            [0, 0, 1, 1, 0, 1],
        ],
        dtype=np.uint8,
    )
    return ReferenceCode(name="johnson", bits=bits, llrs=(-0.5, 2.5, -4.0, 5.0, -3.5, 2.5))


def _create_degenerate3() -> ReferenceCode:
    # Check 2 touches a single variable, so its message is +inf every round.
    bits = np.array(
        [
            [1, 1, 0],
            [0, 1, 1],
            [0, 0, 1],
        ],
        dtype=np.uint8,
    )
    return ReferenceCode(name="degenerate3", bits=bits, llrs=(1.0, -0.5, 2.0), iterations=4)


_CODE_CACHE: Dict[str, ReferenceCode] = {
    "johnson": _create_johnson(),
    "degenerate3": _create_degenerate3(),
}


def available_codes() -> Tuple[str, ...]:
    return tuple(sorted(_CODE_CACHE))


def load_reference_code(name: str) -> ReferenceCode:
    if name not in _CODE_CACHE:
        raise ValueError(f"Unknown reference code: {name}")
    return _CODE_CACHE[name]


__all__ = ["ReferenceCode", "available_codes", "load_reference_code"]
