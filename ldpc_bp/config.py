"""Central configuration defaults for ldpc_bp."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class DecoderConfig:
    iterations: int = 8
    probability_step: float = 0.01
    probability_min: float = 0.01
    probability_max: float = 0.99
    default_probability: float = 0.5  # LLR = 0
    reference_code: str = "johnson"


DEFAULTS = DecoderConfig()


def get_config() -> DecoderConfig:
    """Return a copy of the default configuration."""

    return DecoderConfig(**DEFAULTS.__dict__)
