"""Error taxonomy shared by the store, repositories and CLI."""

from __future__ import annotations


class VwiseError(Exception):
    """Base class for all vwise errors."""


class NotFound(VwiseError, KeyError):
    """No record exists for the requested id."""

    def __init__(self, kind: str, id: str) -> None:
        self.kind = kind
        self.id = id
        super().__init__(f"Unable to find {kind} with id {id}")

    def __str__(self) -> str:
        # KeyError quotes its argument
        return self.args[0]


class InvalidArgument(VwiseError, ValueError):
    """A required argument or capability is missing."""


class Corrupt(VwiseError):
    """A stored record exists but cannot be decoded."""

    def __init__(self, kind: str, id: str, reason: str) -> None:
        self.kind = kind
        self.id = id
        self.reason = reason
        super().__init__(f"Corrupt {kind} record {id}: {reason}")
