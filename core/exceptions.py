"""Typed exceptions for domain failures.

Validation and not-found errors subclass ValueError so generic handlers
keep working for code that only knows about ValueError.
"""


class CRMError(Exception):
    """Base class for domain errors."""


class ValidationError(CRMError, ValueError):
    """Input is malformed or violates a precondition. Never retried automatically."""


class InvalidStateError(ValidationError):
    """The entity exists but is not in a state that allows the operation."""


class NotFoundError(CRMError, ValueError):
    """A referenced entity does not exist or is not visible to the caller."""

    def __init__(self, entity_type: str, entity_id: object):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} {entity_id} not found")


class PersistenceError(CRMError):
    """
    The authoritative write of an operation did not succeed.

    The only failure class that aborts an otherwise-successful workflow.
    """


class ForbiddenError(CRMError):
    """The acting user's role does not permit the operation."""
