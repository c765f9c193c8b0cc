"""Immutable parity-check matrix with precomputed Tanner graph adjacency."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Sequence, Tuple, Union

import numpy as np

from .errors import IndexOutOfRange, InvalidDimensions

logger = logging.getLogger(__name__)

MatrixLike = Union[np.ndarray, Sequence[Sequence[int]]]


def _as_bit_array(bits: MatrixLike) -> np.ndarray:
    if isinstance(bits, np.ndarray):
        rows = bits
    else:
        rows = list(bits)
        if not rows:
            raise InvalidDimensions("parity-check matrix must not be empty")
        widths = {len(row) for row in rows}
        if len(widths) != 1:
            raise InvalidDimensions(f"parity-check matrix is not rectangular (row widths {sorted(widths)})")
    arr = np.array(rows)
    if arr.ndim != 2:
        raise InvalidDimensions("parity-check matrix must be 2D")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidDimensions("parity-check matrix must not be empty")
    if not np.isin(arr, (0, 1)).all():
        raise InvalidDimensions("parity-check matrix entries must be 0 or 1")
    return arr.astype(np.uint8)


class ParityCheckMatrix:
    """Binary H with rows as check nodes and columns as variable nodes."""

    def __init__(self, bits: MatrixLike) -> None:
        arr = _as_bit_array(bits)
        arr.flags.writeable = False
        self._bits = arr

        n_c, n_v = arr.shape
        self._variables_of: Tuple[Tuple[int, ...], ...] = tuple(
            tuple(int(v) for v in np.flatnonzero(arr[c])) for c in range(n_c)
        )
        self._checks_of: Tuple[Tuple[int, ...], ...] = tuple(
            tuple(int(c) for c in np.flatnonzero(arr[:, v])) for v in range(n_v)
        )

        degenerate_c = self.degenerate_checks()
        degenerate_v = self.degenerate_variables()
        if degenerate_c or degenerate_v:
            logger.debug(
                "Degenerate nodes in %dx%d matrix: checks=%s variables=%s",
                n_c, n_v, degenerate_c, degenerate_v,
            )

    @classmethod
    def from_text(cls, text: str) -> "ParityCheckMatrix":
        """Parse a table of 0/1 values, one check per line.

        Values may be separated by whitespace or commas. Blank lines and
        anything after ``#`` are ignored.
        """

        rows = []
        for line in text.splitlines():
            line = line.split("#", 1)[0].replace(",", " ").strip()
            if not line:
                continue
            try:
                rows.append([int(tok) for tok in line.split()])
            except ValueError as exc:
                raise InvalidDimensions(f"non-integer entry in matrix row {line!r}") from exc
        return cls(rows)

    @property
    def n_v(self) -> int:
        return self._bits.shape[1]

    @property
    def n_c(self) -> int:
        return self._bits.shape[0]

    @property
    def bits(self) -> np.ndarray:
        """Read-only (n_c, n_v) uint8 view of H."""

        return self._bits

    @property
    def num_edges(self) -> int:
        return int(self._bits.sum())

    def _check_index(self, c: int) -> None:
        if not 0 <= c < self.n_c:
            raise IndexOutOfRange(f"check index {c} out of range [0, {self.n_c})")

    def _variable_index(self, v: int) -> None:
        if not 0 <= v < self.n_v:
            raise IndexOutOfRange(f"variable index {v} out of range [0, {self.n_v})")

    def connected(self, c: int, v: int) -> bool:
        self._check_index(c)
        self._variable_index(v)
        return bool(self._bits[c, v])

    def variables_of(self, c: int) -> Tuple[int, ...]:
        """Variable indices taking part in check `c`."""

        self._check_index(c)
        return self._variables_of[c]

    def checks_of(self, v: int) -> Tuple[int, ...]:
        """Check indices that constrain variable `v`."""

        self._variable_index(v)
        return self._checks_of[v]

    def edges(self) -> Iterator[Tuple[int, int]]:
        for c, variables in enumerate(self._variables_of):
            for v in variables:
                yield c, v

    def degenerate_checks(self) -> Tuple[int, ...]:
        return tuple(c for c, variables in enumerate(self._variables_of) if not variables)

    def degenerate_variables(self) -> Tuple[int, ...]:
        return tuple(v for v, checks in enumerate(self._checks_of) if not checks)

    def syndrome(self, hard_bits: np.ndarray) -> np.ndarray:
        """Per-check parity of `hard_bits` under H."""

        hard_bits = np.asarray(hard_bits)
        if hard_bits.shape != (self.n_v,):
            raise InvalidDimensions(f"expected {self.n_v} bits, got shape {hard_bits.shape}")
        return ((self._bits.astype(np.int64) @ (hard_bits.astype(np.int64) & 1)) % 2).astype(np.uint8)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParityCheckMatrix):
            return NotImplemented
        return np.array_equal(self._bits, other._bits)

    def __hash__(self) -> int:
        return hash((self._bits.shape, self._bits.tobytes()))

    def __repr__(self) -> str:
        return f"ParityCheckMatrix(n_c={self.n_c}, n_v={self.n_v}, edges={self.num_edges})"


def load_matrix(path: Union[str, Path]) -> ParityCheckMatrix:
    """Read a parity-check matrix table from a text file."""

    text = Path(path).read_text()
    matrix = ParityCheckMatrix.from_text(text)
    logger.debug("Loaded %r from %s", matrix, path)
    return matrix


__all__ = ["ParityCheckMatrix", "load_matrix"]
