"""Exception types raised by the sorter, table and CLI, and their mapping onto exit codes."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from functools import wraps
from typing import Any, NoReturn, TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")


class Exit(IntEnum):
    """Process exit codes returned by `mhlab` subcommands."""

    OK = 0
    BAD_INPUT = 2
    INVARIANT = 3
    POLICY = 4
    IO = 5


@dataclass(slots=True)
class ErrorEnvelope:
    """One-line JSON written to stderr when a subcommand fails."""

    error: str
    detail: str
    hint: str | None = None

    def to_json(self) -> str:
        payload = {"error": self.error, "detail": self.detail}
        if self.hint:
            payload["hint"] = self.hint
        return json.dumps(payload, ensure_ascii=False)


def die(code: Exit, kind: str, detail: str, hint: str | None = None) -> NoReturn:
    """Report ``kind``/``detail`` as an :class:`ErrorEnvelope` on stderr and exit with ``code``."""

    sys.stderr.write(ErrorEnvelope(error=kind, detail=detail, hint=hint).to_json() + "\n")
    try:
        sys.stderr.flush()
    finally:
        sys.exit(int(code))


class EnvelopeError(Exception):
    """Root of the merge-hash-lab errors; ``hint`` is echoed to the user when set."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class BadInputError(EnvelopeError):
    """Unparseable sort tokens, `key=value` pairs, scheduler kinds or config values."""


class PreconditionError(BadInputError, ValueError):
    """Raised when a core operation receives ``None`` where a value is required.

    Raised before any state is touched, so callers never observe partial effects.
    """


class InvariantError(EnvelopeError):
    """A table dump that does not match its schema, bucket order or size."""


class PolicyError(EnvelopeError):
    """A subcommand the CLI does not dispatch."""


class IOErrorEnvelope(EnvelopeError):  # noqa: N818
    """An input file that exists but cannot be read as UTF-8 text."""


def require_not_none(value: T | None, name: str) -> T:
    """Return ``value`` or raise :class:`PreconditionError` naming the argument."""

    if value is None:
        raise PreconditionError(f"{name} must not be None")
    return value


_EXCEPTION_ORDER: tuple[tuple[type[EnvelopeError], Exit, str], ...] = (
    (PreconditionError, Exit.BAD_INPUT, "Precondition"),
    (BadInputError, Exit.BAD_INPUT, "BadInput"),
    (InvariantError, Exit.INVARIANT, "Invariant"),
    (PolicyError, Exit.POLICY, "Policy"),
    (IOErrorEnvelope, Exit.IO, "IO"),
)


def guard_cli(fn: Callable[..., T]) -> Callable[..., T]:
    """Run a subcommand handler, turning known failures into an envelope and exit code.

    Anything unrecognised is logged with its traceback and reported as ``Unhandled``.
    """

    @wraps(fn)
    def _wrapped(*args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except EnvelopeError as exc:
            for exc_type, exit_code, label in _EXCEPTION_ORDER:
                if isinstance(exc, exc_type):
                    die(exit_code, label, str(exc), hint=getattr(exc, "hint", None))
            die(Exit.POLICY, "UnhandledEnvelope", str(exc), hint=getattr(exc, "hint", None))
        except FileNotFoundError as exc:
            die(Exit.IO, "FileNotFound", str(exc))
        except Exception as exc:  # pragma: no cover
            logger.exception("Unhandled CLI exception")
            die(Exit.POLICY, "Unhandled", f"{type(exc).__name__}: {exc}")

    return _wrapped


__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "PreconditionError",
    "InvariantError",
    "PolicyError",
    "IOErrorEnvelope",
    "require_not_none",
    "guard_cli",
    "die",
]
