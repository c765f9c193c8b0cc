"""Sum-product (belief propagation) LDPC decoding in the LLR domain.

Every run computes the full configured number of iterations; there is no
early exit once the syndrome clears, so each round can be inspected.

Per iteration ``k`` (edges are the ones of H):

1. ``v2c[k][c][v] = ln((1 + t) / (1 - t))`` with
   ``t = prod_{v' != v} tanh(c2v[k][c][v'] / 2)``
2. ``marginal[v] = llr[v] + sum_c v2c[k][c][v]``, ``bit[v] = marginal[v] < 0``
3. ``syndrome[c] = xor_v bit[v]``
4. ``c2v[k + 1][c][v] = llr[v] + sum_{c' != c} v2c[k][c'][v]``

with ``c2v[0][c][v] = llr[v]``. Messages never travel back along the edge
they arrived on.
"""

from __future__ import annotations

import logging
import warnings
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .. import config
from .channel import ChannelModel
from .errors import InvalidDimensions, NumericDomainWarning
from .matrix import ParityCheckMatrix
from .decode_trace import DecodeTrace, Iteration

logger = logging.getLogger(__name__)


def _tanh_rule(c2v_row: np.ndarray, variables: Sequence[int]) -> Tuple[np.ndarray, np.ndarray]:
    """Extrinsic tanh-rule output for every edge of one check.

    Returns the messages and a mask of edges whose product saturated.
    """

    half_tanh = np.tanh(c2v_row[list(variables)] / 2.0)
    out = np.empty(len(variables), dtype=np.float64)
    saturated = np.zeros(len(variables), dtype=bool)
    for j in range(len(variables)):
        t = 1.0
        for i, value in enumerate(half_tanh):
            if i != j:
                t *= value
        msg = np.log((1.0 + t) / (1.0 - t)) if t != 1.0 else np.float64(np.inf)
        out[j] = msg
        saturated[j] = abs(t) == 1.0 or not np.isfinite(msg)
    return out, saturated


class SumProductEngine:
    """Produces a `DecodeTrace` of fixed length from H and the channel."""

    def __init__(self, iterations: Optional[int] = None) -> None:
        if iterations is None:
            iterations = config.DEFAULTS.iterations
        if iterations < 1:
            raise ValueError("iterations must be at least 1")
        self.iterations = int(iterations)

    def resolve(self, matrix: ParityCheckMatrix, channel: ChannelModel, stacklevel: int = 2) -> DecodeTrace:
        """Run every iteration; `stacklevel` is handed to the saturation warning."""

        if channel.n_v != matrix.n_v:
            raise InvalidDimensions(
                f"channel has {channel.n_v} variables but the matrix has {matrix.n_v}"
            )

        n_c, n_v = matrix.n_c, matrix.n_v
        edges = matrix.bits.astype(bool)
        llr = channel.llrs()

        c2v = np.full((n_c, n_v), np.nan)
        for c, v in matrix.edges():
            c2v[c, v] = llr[v]

        results: List[Iteration] = []
        # +/-inf and NaN are propagated, never clamped; saturation is flagged instead.
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            for k in range(self.iterations):
                # 1. tanh rule
                v2c = np.full((n_c, n_v), np.nan)
                saturated = np.zeros((n_c, n_v), dtype=bool)
                for c in range(n_c):
                    variables = list(matrix.variables_of(c))
                    if not variables:
                        continue
                    messages, hit = _tanh_rule(c2v[c], variables)
                    v2c[c, variables] = messages
                    saturated[c, variables] = hit

                # 2. marginals and hard decisions
                marginal = np.empty(n_v, dtype=np.float64)
                for v in range(n_v):
                    total = llr[v]
                    for c in matrix.checks_of(v):
                        total += v2c[c, v]
                    marginal[v] = total
                bits = (marginal < 0).astype(np.uint8)

                # 3. syndrome
                syndrome = np.zeros(n_c, dtype=np.uint8)
                for c in range(n_c):
                    for v in matrix.variables_of(c):
                        syndrome[c] ^= bits[v]

                results.append(
                    Iteration(
                        index=k,
                        edges=edges.copy(),
                        c2v=c2v,
                        v2c=v2c,
                        marginal=marginal,
                        bits=bits,
                        syndrome=syndrome,
                        saturated=saturated,
                    )
                )

                # 4. sum rule feeding the next round
                if k + 1 < self.iterations:
                    next_c2v = np.full((n_c, n_v), np.nan)
                    for c, v in matrix.edges():
                        total = llr[v]
                        for other in matrix.checks_of(v):
                            if other != c:
                                total += v2c[other, v]
                        next_c2v[c, v] = total
                    c2v = next_c2v

        trace = DecodeTrace(results)
        flagged = trace.saturated_iterations()
        if flagged:
            warnings.warn(
                f"tanh product saturated to +/-1 in iterations {flagged}; infinite or NaN messages propagated",
                NumericDomainWarning,
                stacklevel=stacklevel,
            )
        logger.debug(
            "Resolved %d iterations on %r: final syndrome=%s",
            self.iterations, matrix, trace.final.syndrome.tolist(),
        )
        return trace


def resolve(
    matrix: ParityCheckMatrix,
    channel: ChannelModel,
    iterations: Optional[int] = None,
) -> DecodeTrace:
    """Run the sum-product decoder once and return the full trace."""

    return SumProductEngine(iterations).resolve(matrix, channel, stacklevel=3)


__all__ = ["SumProductEngine", "resolve"]
