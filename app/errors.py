"""Exception types shared by the ranking engine and its collaborators."""

from __future__ import annotations


class EmptyPoolError(RuntimeError):
    """Raised when no eligible item is left to pick a digest from."""


class MalformedRecordError(ValueError):
    """Raised when a store row cannot be coerced into its record model.

    Aggregations that tolerate malformed rows catch this and move on.
    """

    def __init__(self, message: str, record: object = None):
        super().__init__(message)
        self.record = record


class NotFoundError(KeyError):
    """Raised when a requested entity is absent from the fetched snapshot."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class UpstreamError(RuntimeError):
    """Raised when an upstream API answers with an error status."""

    def __init__(self, service: str, status_code: int, body: str):
        super().__init__(f"{service} error: {status_code} {body}")
        self.service = service
        self.status_code = status_code
        self.body = body
