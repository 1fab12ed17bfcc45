"""Errors raised by the marketplace workflow beyond Protean's own.

Validation and not-found conditions use ``protean.exceptions.ValidationError``
and ``ObjectNotFoundError``. The classes here cover failures of external
dependencies and multi-document updates that only partially applied.
"""


class ExternalServiceError(Exception):
    """An external dependency failed. Retryable by the caller."""

    def __init__(self, service: str, message: str):
        self.service = service
        self.message = message
        super().__init__(f"{service}: {message}")


class CollaboratorUnavailable(ExternalServiceError):
    """Cart, catalog, identity or review collaborator could not be reached."""


class PartialUpdateError(Exception):
    """A mirror write failed after the authoritative write succeeded.

    The saga log identified by ``saga_id`` holds the failed step; it can be
    re-applied with ``marketplace.saga.repair.repair_saga``.
    """

    def __init__(self, saga_id: str, step: str, message: str):
        self.saga_id = saga_id
        self.step = step
        self.message = message
        super().__init__(f"Partial update in saga {saga_id} at step {step}: {message}")


class InvalidSignature(Exception):
    """A payment notification failed the gateway's signature check."""
