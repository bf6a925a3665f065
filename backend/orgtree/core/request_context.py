"""Request correlation ID propagation.

The ID set by the request logging middleware is picked up by every
``log_json`` call made while the request is being served.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from uuid import uuid4

MAX_REQUEST_ID_LENGTH = 128

_request_id_var: ContextVar[str | None] = ContextVar("orgtree_request_id", default=None)


def get_request_id() -> str | None:
    return _request_id_var.get()


def new_request_id() -> str:
    return str(uuid4())


def sanitize_request_id(candidate: str | None) -> str | None:
    """Return a client supplied ID if it is safe to echo into logs and headers."""
    if not candidate:
        return None
    candidate = candidate.strip()
    if not candidate or len(candidate) > MAX_REQUEST_ID_LENGTH:
        return None
    if "\n" in candidate or "\r" in candidate:
        return None
    return candidate


@contextmanager
def request_id_context(request_id: str | None):
    """Bind ``request_id`` for the duration of the block."""
    token = _request_id_var.set(request_id)
    try:
        yield
    finally:
        _request_id_var.reset(token)
