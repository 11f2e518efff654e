"""Correlation and operation identifiers bound into the structlog context."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from uuid import uuid4

import structlog

CORRELATION_ID_KEY = "correlation_id"
OPERATION_KEY = "operation"


def current_correlation_id() -> str | None:
    """Correlation id bound in the current context, if any."""
    value = structlog.contextvars.get_contextvars().get(CORRELATION_ID_KEY)
    return str(value) if value is not None else None


@contextmanager
def correlation_scope(existing_id: str | None = None) -> Iterator[str]:
    """Bind a correlation identifier for the lifetime of the context.

    Without ``existing_id`` an enclosing scope's id is reused, otherwise a new
    one is generated. Previous bindings are restored on exit.
    """

    correlation_id = existing_id or current_correlation_id() or str(uuid4())
    with structlog.contextvars.bound_contextvars(**{CORRELATION_ID_KEY: correlation_id}):
        yield correlation_id


@contextmanager
def operation_scope(operation: str, correlation_id: str | None = None) -> Iterator[str]:
    """Bind the use case name and a correlation id; yields the correlation id."""
    with correlation_scope(correlation_id) as bound_id:
        with structlog.contextvars.bound_contextvars(**{OPERATION_KEY: operation}):
            yield bound_id


__all__ = [
    "CORRELATION_ID_KEY",
    "OPERATION_KEY",
    "correlation_scope",
    "current_correlation_id",
    "operation_scope",
]
