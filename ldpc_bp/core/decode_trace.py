"""Per-iteration decoder snapshots and the ordered trace that holds them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import IndexOutOfRange


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class Iteration:
    """One round of sum-product message passing.

    `c2v` and `v2c` have shape (n_c, n_v). Entries off the Tanner graph
    edges hold NaN; use `check_to_variable` / `variable_to_check` to read a
    single edge.
    """

    index: int
    edges: np.ndarray  # bool (n_c, n_v)
    c2v: np.ndarray
    v2c: np.ndarray
    marginal: np.ndarray
    bits: np.ndarray
    syndrome: np.ndarray
    saturated: np.ndarray  # bool (n_c, n_v), tanh product hit +/-1 or output not finite

    def __post_init__(self) -> None:
        for name in ("edges", "c2v", "v2c", "marginal", "bits", "syndrome", "saturated"):
            _frozen(getattr(self, name))

    def _edge(self, c: int, v: int) -> Tuple[int, int]:
        n_c, n_v = self.edges.shape
        if not (0 <= c < n_c and 0 <= v < n_v) or not self.edges[c, v]:
            raise IndexOutOfRange(f"({c}, {v}) is not an edge of the parity-check matrix")
        return c, v

    def check_to_variable(self, c: int, v: int) -> float:
        return float(self.c2v[self._edge(c, v)])

    def variable_to_check(self, c: int, v: int) -> float:
        return float(self.v2c[self._edge(c, v)])

    @property
    def is_valid(self) -> bool:
        """True when every parity check is satisfied."""

        return not self.syndrome.any()

    @property
    def numeric_warning(self) -> bool:
        return bool(self.saturated.any())

    def saturated_edges(self) -> List[Tuple[int, int]]:
        return [(int(c), int(v)) for c, v in zip(*np.nonzero(self.saturated))]


class DecodeTrace:
    """Fixed-length, indexable sequence of fully computed iterations."""

    def __init__(self, iterations: Sequence[Iteration]) -> None:
        self._iterations: Tuple[Iteration, ...] = tuple(iterations)

    def at(self, k: int) -> Iteration:
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
            raise TypeError(f"iteration index must be an int, got {type(k).__name__}")
        if not 0 <= k < len(self._iterations):
            raise IndexOutOfRange(f"iteration {k} out of range [0, {len(self._iterations)})")
        return self._iterations[k]

    def __getitem__(self, k: Union[int, slice]) -> Union[Iteration, Tuple[Iteration, ...]]:
        if isinstance(k, slice):
            return self._iterations[k]
        return self.at(k)

    def __len__(self) -> int:
        return len(self._iterations)

    def __iter__(self) -> Iterator[Iteration]:
        return iter(self._iterations)

    @property
    def final(self) -> Iteration:
        return self._iterations[-1]

    def first_valid(self) -> Optional[int]:
        """Index of the first iteration with an all-zero syndrome, if any."""

        for it in self._iterations:
            if it.is_valid:
                return it.index
        return None

    def saturated_iterations(self) -> List[int]:
        return [it.index for it in self._iterations if it.numeric_warning]

    def __repr__(self) -> str:
        return f"DecodeTrace(iterations={len(self)}, final_valid={self.final.is_valid if self else None})"


__all__ = ["Iteration", "DecodeTrace"]
