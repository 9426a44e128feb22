"""Job-scoped logging helpers for BOM conversion runs."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

_run_id_ctx: ContextVar[Optional[str]] = ContextVar("bomconvert_run_id", default=None)


def bind_run_id(value: Optional[str]) -> Optional[Token]:
    """Bind a run_id for the current context and return the reset token."""

    if value is None:
        return None
    return _run_id_ctx.set(value)


def reset_run_id(token: Optional[Token]) -> None:
    """Reset the run_id context using the provided token."""

    if token is None:
        return
    _run_id_ctx.reset(token)


def current_run_id() -> Optional[str]:
    """Return the active run_id if set."""

    return _run_id_ctx.get()


@contextmanager
def run_scope(run_id: Optional[str] = None) -> Iterator[str]:
    """Bind a run_id (fresh unless given) for the duration of the block."""

    value = run_id or str(uuid.uuid4())
    token = bind_run_id(value)
    try:
        yield value
    finally:
        reset_run_id(token)


def log_event(message: str, **extra: object) -> None:
    """Log an event with the active run_id automatically attached."""

    payload = {"run_id": current_run_id(), **extra}
    logger.info(message, extra={"payload": payload})
