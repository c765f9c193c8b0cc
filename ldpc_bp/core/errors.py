"""Exceptions and warnings raised by the sum-product decoder."""

from __future__ import annotations


class InvalidDimensions(ValueError):
    """Matrix or prior definition has an unusable shape."""


class IndexOutOfRange(IndexError):
    """Iteration, check, or variable index outside its valid bounds."""


class NumericDomainWarning(RuntimeWarning):
    """A tanh product saturated to +/-1 and produced an infinite or NaN message."""


__all__ = ["InvalidDimensions", "IndexOutOfRange", "NumericDomainWarning"]
