"""Session API: a channel bound to a matrix, kept resolved after every edit."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Union

from .. import config
from .channel import ChannelModel, Priors
from .codes import load_reference_code
from .engine import SumProductEngine
from .errors import InvalidDimensions
from .matrix import MatrixLike, ParityCheckMatrix
from .decode_trace import DecodeTrace

logger = logging.getLogger(__name__)


class Direction(Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


class Session:
    """Matrix, channel, and the trace most recently resolved from them.

    The trace is replaced as a whole on every channel adjustment; callers
    only ever see fully computed traces.
    """

    def __init__(
        self,
        matrix: ParityCheckMatrix,
        channel: ChannelModel,
        iterations: Optional[int] = None,
        *,
        _stacklevel: int = 3,
    ) -> None:
        if channel.n_v != matrix.n_v:
            raise InvalidDimensions(
                f"channel has {channel.n_v} variables but the matrix has {matrix.n_v}"
            )
        self.matrix = matrix
        self._channel = channel
        self._engine = SumProductEngine(iterations)
        self._trace = self._engine.resolve(self.matrix, self._channel, stacklevel=_stacklevel)

    @classmethod
    def from_reference(cls, name: Optional[str] = None, iterations: Optional[int] = None) -> "Session":
        code = load_reference_code(name or config.DEFAULTS.reference_code)
        matrix = code.matrix()
        channel = ChannelModel.from_llrs(matrix.n_v, code.llrs)
        return cls(
            matrix,
            channel,
            iterations if iterations is not None else code.iterations,
            _stacklevel=4,
        )

    @property
    def iterations(self) -> int:
        return self._engine.iterations

    @property
    def channel(self) -> ChannelModel:
        """Copy of the channel; use `adjust_probability` to change it."""

        return self._channel.copy()

    @property
    def trace(self) -> DecodeTrace:
        return self._trace

    def adjust_probability(self, v: int, direction: Union[Direction, str]) -> DecodeTrace:
        return self._adjust(v, direction, stacklevel=4)

    def _adjust(self, v: int, direction: Union[Direction, str], stacklevel: int) -> DecodeTrace:
        direction = Direction(direction)
        if direction is Direction.INCREASE:
            p = self._channel.increase(v)
        else:
            p = self._channel.decrease(v)
        logger.debug("Variable %d %s to %.2f, re-resolving", v, direction.value, p)
        self._trace = self._engine.resolve(self.matrix, self._channel, stacklevel=stacklevel)
        return self._trace

    def is_valid(self, k: int) -> bool:
        return self._trace.at(k).is_valid


def construct(
    matrix_definition: MatrixLike,
    iteration_count: Optional[int] = None,
    initial_probabilities: Optional[Priors] = None,
    initial_llrs: Optional[Priors] = None,
) -> Session:
    """Build a resolved session from a 0/1 table and optional priors."""

    if initial_probabilities is not None and initial_llrs is not None:
        raise ValueError("supply initial_probabilities or initial_llrs, not both")
    matrix = ParityCheckMatrix(matrix_definition)
    if initial_llrs is not None:
        channel = ChannelModel.from_llrs(matrix.n_v, initial_llrs)
    else:
        channel = ChannelModel(matrix.n_v, initial_probabilities)
    return Session(matrix, channel, iteration_count, _stacklevel=4)


def adjust_probability(session: Session, variable_index: int, direction: Union[Direction, str]) -> DecodeTrace:
    return session._adjust(variable_index, direction, stacklevel=4)


def trace(session: Session) -> DecodeTrace:
    return session.trace


def is_valid(session: Session, iteration_index: int) -> bool:
    return session.is_valid(iteration_index)


__all__ = ["Direction", "Session", "construct", "adjust_probability", "trace", "is_valid"]
