"""Storefront error kinds.

Two kinds reach callers: ``NotFoundError`` is a recoverable, user-facing
condition (missing category, empty result where rows were expected) and
``InternalError`` covers storage, scan and decode failures. Internal errors
carry their detail for logging only; the HTTP layer surfaces them opaquely.
"""
from __future__ import annotations

from typing import Any


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(StorefrontError):
    status_code = 404


class InternalError(StorefrontError):
    status_code = 500

    @classmethod
    def wrap(cls, message: str, exc: BaseException) -> "InternalError":
        err = cls(f"{message}: {exc}", details={"cause": type(exc).__name__})
        err.__cause__ = exc
        return err


class QueryCancelledError(InternalError):
    """The storage query was aborted before rows were produced."""

    status_code = 503
