"""Classification of transport failures for the submission retry policy."""

from __future__ import annotations

import socket
from typing import Iterator

import httpx

_NAME_RESOLUTION_HINTS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
)


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def is_name_resolution_error(exc: BaseException) -> bool:
    """``True`` if ``exc`` (or anything it wraps) is a DNS lookup failure."""

    for err in _exception_chain(exc):
        if isinstance(err, socket.gaierror):
            return True
        message = str(err).lower()
        if any(hint in message for hint in _NAME_RESOLUTION_HINTS):
            return True
    return False


def is_retryable(exc: BaseException) -> bool:
    """Timeouts and name-resolution failures are worth another attempt."""

    if isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, httpx.TransportError):
        return is_name_resolution_error(exc)
    return False


__all__ = ["is_retryable", "is_name_resolution_error"]
