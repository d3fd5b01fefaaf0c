"""Typed failures raised by the adherence engine."""

from __future__ import annotations


class AdherenceError(Exception):
    """Base class for all engine errors."""


class ValidationError(AdherenceError, ValueError):
    """A required field is missing/blank or a value could not be parsed."""


class NotFoundError(AdherenceError, KeyError):
    """An operation referenced an id that is not in the owning collection."""

    def __init__(self, kind: str, item_id: int):
        self.kind = kind
        self.id = item_id
        super().__init__(f"{kind} {item_id} not found")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]
