"""Per-variable channel priors and their LLR transform."""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence, Union

import numpy as np

from .. import config
from .conversions import l_to_p, p_to_l, truncate_2dp
from .errors import IndexOutOfRange, InvalidDimensions

logger = logging.getLogger(__name__)

Priors = Union[Mapping[int, float], Sequence[float], np.ndarray]


def _prior_items(n_v: int, priors: Optional[Priors]):
    if priors is None:
        return []
    if isinstance(priors, Mapping):
        items = [(int(v), float(value)) for v, value in priors.items()]
    else:
        values = np.asarray(priors, dtype=np.float64)
        if values.ndim != 1:
            raise InvalidDimensions("initial priors must be 1D")
        items = list(enumerate(values.tolist()))
    for v, _ in items:
        if not 0 <= v < n_v:
            raise InvalidDimensions(f"prior given for variable {v}, but only {n_v} variables exist")
    return items


class ChannelModel:
    """Channel probabilities P(bit = 0), one per variable node.

    Only `increase` and `decrease` mutate the model. Each one truncates the
    current value to two decimals, moves it by one step and clamps it into
    ``[probability_min, probability_max]``. LLRs are always derived from the
    stored probabilities.
    """

    def __init__(
        self,
        n_v: int,
        initial_probabilities: Optional[Priors] = None,
        cfg: Optional[config.DecoderConfig] = None,
    ) -> None:
        if n_v < 1:
            raise InvalidDimensions("channel needs at least one variable")
        self._cfg = cfg if cfg is not None else config.get_config()
        self._p = np.full(n_v, self._cfg.default_probability, dtype=np.float64)
        for v, value in _prior_items(n_v, initial_probabilities):
            if np.isnan(value):
                raise ValueError(f"prior for variable {v} is NaN")
            # Interior priors are kept as given; only the 0/1 edges are pulled in.
            if value <= 0.0 or value >= 1.0:
                clamped = self._cfg.probability_min if value <= 0.0 else self._cfg.probability_max
                logger.debug("Prior for variable %d clamped from %r to %.2f", v, value, clamped)
                value = clamped
            self._p[v] = value

    @classmethod
    def from_llrs(
        cls,
        n_v: int,
        llrs: Optional[Priors] = None,
        cfg: Optional[config.DecoderConfig] = None,
    ) -> "ChannelModel":
        """Build a channel from prior LLRs instead of probabilities."""

        probabilities = {v: l_to_p(value) for v, value in _prior_items(n_v, llrs)}
        return cls(n_v, probabilities, cfg=cfg)

    @property
    def n_v(self) -> int:
        return self._p.size

    def _index(self, v: int) -> int:
        if not 0 <= v < self.n_v:
            raise IndexOutOfRange(f"variable index {v} out of range [0, {self.n_v})")
        return v

    def probability(self, v: int) -> float:
        return float(self._p[self._index(v)])

    def llr(self, v: int) -> float:
        return p_to_l(self.probability(v))

    def probabilities(self) -> np.ndarray:
        return self._p.copy()

    def llrs(self) -> np.ndarray:
        return p_to_l(self._p)

    def _step(self, v: int, delta: float) -> float:
        self._index(v)
        lo, hi = self._cfg.probability_min, self._cfg.probability_max
        p = truncate_2dp(float(self._p[v]))
        if delta > 0:
            p = round(p + delta, 2) if p < hi else hi
        else:
            p = round(p + delta, 2) if p > lo else lo
        self._p[v] = min(max(p, lo), hi)
        logger.debug("Channel probability[%d] -> %.2f", v, self._p[v])
        return float(self._p[v])

    def increase(self, v: int) -> float:
        return self._step(v, self._cfg.probability_step)

    def decrease(self, v: int) -> float:
        return self._step(v, -self._cfg.probability_step)

    def copy(self) -> "ChannelModel":
        other = ChannelModel(self.n_v, cfg=self._cfg)
        other._p[:] = self._p
        return other

    def __repr__(self) -> str:
        probs = ", ".join(f"{p:.4f}" for p in self._p)
        return f"ChannelModel([{probs}])"


__all__ = ["ChannelModel"]
