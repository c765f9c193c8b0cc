"""Probability <-> log-likelihood ratio conversions."""

from __future__ import annotations

from typing import Union

import numpy as np

ArrayOrFloat = Union[float, np.ndarray]


def l_to_p(llr: ArrayOrFloat) -> ArrayOrFloat:
    """Return P(bit = 0) for an LLR ln(P0 / P1)."""

    llr_arr = np.asarray(llr, dtype=np.float64)
    with np.errstate(over="ignore"):
        p = 1.0 / (1.0 + np.exp(-llr_arr))
    if p.ndim == 0:
        return float(p)
    return p


def p_to_l(p: ArrayOrFloat) -> ArrayOrFloat:
    """Return ln(p / (1 - p)); p must lie strictly inside (0, 1)."""

    p_arr = np.asarray(p, dtype=np.float64)
    if np.any(~((p_arr > 0.0) & (p_arr < 1.0))):
        raise ValueError("probability must lie strictly inside (0, 1)")
    llr = np.log(p_arr / (1.0 - p_arr))
    if llr.ndim == 0:
        return float(llr)
    return llr


def truncate_2dp(p: float) -> float:
    """Drop everything past the second decimal place of `p`."""

    # Rounding first keeps e.g. 0.29 * 100 = 28.999999999999996 at 29.
    return float(np.floor(round(p * 100.0, 9))) / 100.0


__all__ = ["l_to_p", "p_to_l", "truncate_2dp"]
