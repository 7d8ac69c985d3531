"""Typed failures raised by engine commands.

Callers catch ``PlannerError`` subclasses; anything else is a bug. Storage
faults arrive as ``PersistenceError`` and may leave a multi-step command
partially applied.
"""

from __future__ import annotations

from dataclasses import dataclass

USER_RETRY_MESSAGE = "Something went wrong while saving your changes. Please try again."


class PlannerError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(PlannerError, ValueError):
    """Command input rejected before any write."""


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class RecordValidationError(InvalidInputError):
    """A record failed its validator at a collection write boundary."""

    def __init__(self, collection: str, errors: list[FieldError]):
        self.collection = collection
        self.errors = list(errors)
        joined = "; ".join(str(e) for e in self.errors) or "invalid record"
        super().__init__(f"Invalid {collection} record: {joined}")


class NotFoundError(PlannerError, LookupError):
    """Target record does not exist."""


class ConflictError(PlannerError):
    """Command conflicts with current state; nothing was written."""


class LastTemplateError(ConflictError):
    """Deleting the template would leave none."""


class SlotOccupiedError(ConflictError):
    """A session already exists at the target slot."""


class DuplicateKeyError(ConflictError):
    """Insert collided with an existing key."""

    def __init__(self, collection: str, keys: list[str]):
        self.collection = collection
        self.keys = list(keys)
        super().__init__(f"{collection} already contains: {', '.join(self.keys)}")


class SessionStateError(ConflictError):
    """Lifecycle transition not allowed from the session's current status."""


class PersistenceError(PlannerError):
    """The storage layer failed to confirm a read or write."""

    def __init__(self, collection: str, detail: str):
        self.collection = collection
        self.detail = detail
        super().__init__(f"Persistence failure in {collection}: {detail}")
