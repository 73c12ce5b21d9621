"""
Errors raised by the boundary services.

Callers decide on retry policy; none of these are retried internally.
"""


class BoundaryError(Exception):
    """Base class for boundary subsystem errors."""


class NotFoundError(BoundaryError):
    """Referenced assignment or proposal does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidStateError(BoundaryError):
    """Operation is not allowed from the entity's current state."""


class ValidationError(BoundaryError):
    """Malformed input, rejected before anything is persisted."""
