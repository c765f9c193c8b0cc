"""Sum-product LDPC decoder core: matrix, channel, engine, trace, session."""

from .errors import InvalidDimensions, IndexOutOfRange, NumericDomainWarning
from .conversions import l_to_p, p_to_l
from .matrix import ParityCheckMatrix, load_matrix
from .channel import ChannelModel
from .decode_trace import Iteration, DecodeTrace
from .engine import SumProductEngine, resolve
from .codes import ReferenceCode, available_codes, load_reference_code
from .session import Direction, Session, construct, adjust_probability, trace, is_valid

__all__ = [
    "InvalidDimensions",
    "IndexOutOfRange",
    "NumericDomainWarning",
    "l_to_p",
    "p_to_l",
    "ParityCheckMatrix",
    "load_matrix",
    "ChannelModel",
    "Iteration",
    "DecodeTrace",
    "SumProductEngine",
    "resolve",
    "ReferenceCode",
    "available_codes",
    "load_reference_code",
    "Direction",
    "Session",
    "construct",
    "adjust_probability",
    "trace",
    "is_valid",
]
