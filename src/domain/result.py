"""Tagged result type for expected failures.

Use cases return ``Ok(value)`` or ``Err(DomainError(...))`` instead of
raising for outcomes a caller is expected to branch on. Callers check
``result.ok`` and read ``result.value`` or ``result.error.code``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeAlias, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class DomainError:
    """Stable error code plus a human readable message."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: Literal[True] = True


@dataclass(frozen=True)
class Err:
    error: DomainError
    ok: Literal[False] = False


Result: TypeAlias = Ok[T] | Err


def err(code: str, message: str, field: str | None = None) -> Err:
    """Shorthand for ``Err(DomainError(code, message, field))``."""
    return Err(DomainError(code=code, message=message, field=field))


__all__ = ["DomainError", "Err", "Ok", "Result", "err"]
