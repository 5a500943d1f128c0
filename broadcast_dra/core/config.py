"""
Protocol configuration for broadcast_dra.

Defines the phase schedule, commitment backend defaults and logging options.
Values can be supplied through DRA_* environment variables, optionally from
a dotenv file.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from broadcast_dra.core.auction.transcript import PhaseSchedule
from broadcast_dra.core.commitment import SchemeKind
from broadcast_dra.core.commitment.range_proof import DEFAULT_RANGE_BITS, validate_range_bits

ENV_PREFIX = "DRA_"


class ProtocolConfig(BaseModel):
    """Protocol-wide configuration parameters"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Phase schedule (logical clock ticks)
    commit_deadline: int = 4
    reveal_deadline: int = 8

    # Commitments
    default_scheme: SchemeKind = SchemeKind.SHA
    range_bits: int = DEFAULT_RANGE_BITS

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    log_to_file: bool = False

    @field_validator("commit_deadline", "reveal_deadline")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("deadlines must be non-negative")
        return value

    @field_validator("range_bits")
    @classmethod
    def _range_bits(cls, value: int) -> int:
        return validate_range_bits(value)

    @field_validator("log_level")
    @classmethod
    def _log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {value!r}")
        return value

    @model_validator(mode="after")
    def _ordered_deadlines(self) -> "ProtocolConfig":
        if self.reveal_deadline < self.commit_deadline:
            raise ValueError("reveal_deadline must not precede commit_deadline")
        return self

    def schedule(self) -> PhaseSchedule:
        return PhaseSchedule(self.commit_deadline, self.reveal_deadline)


def load_config(env_file: Optional[str] = None) -> ProtocolConfig:
    """
    Load configuration from DRA_* variables.

    Args:
        env_file: Optional dotenv file; the process environment overrides it

    Returns:
        ProtocolConfig instance
    """
    values = {}
    if env_file:
        values.update(dotenv_values(env_file))
    values.update(os.environ)

    fields = {}
    for key, value in values.items():
        if value is None or not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name in ProtocolConfig.model_fields:
            fields[name] = value
    return ProtocolConfig(**fields)


__all__ = ["ProtocolConfig", "load_config", "ENV_PREFIX"]
