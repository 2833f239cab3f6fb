"""Contract helpers for merge-hash-lab."""

from .error import (
    BadInputError,
    EnvelopeError,
    ErrorEnvelope,
    Exit,
    InvariantError,
    IOErrorEnvelope,
    PolicyError,
    PreconditionError,
    die,
    guard_cli,
    require_not_none,
)
from .schema import DUMP_SCHEMA, load_dump_schema, validate_dump

__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "PreconditionError",
    "InvariantError",
    "PolicyError",
    "IOErrorEnvelope",
    "DUMP_SCHEMA",
    "load_dump_schema",
    "validate_dump",
    "require_not_none",
    "guard_cli",
    "die",
]
