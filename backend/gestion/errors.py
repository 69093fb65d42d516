# Overview: Error taxonomy shared by every service; all errors are recoverable at the call site.


class GestionError(Exception):
    """Base class for domain errors raised by the services."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(GestionError):
    """Malformed input: empty description, non-positive amount, bad percentage, etc."""


class InvalidStateError(GestionError):
    """Operation attempted on an entity whose status forbids it."""


class TransferStateError(InvalidStateError):
    """Transfer is not in a state that allows the requested transition."""


class NotFoundError(GestionError):
    """Referenced transfer, rendition, goal, bonus or business unit is absent."""


class AuthorizationError(GestionError):
    """Actor role is insufficient for the operation."""


class StorageUnavailableError(GestionError):
    """Persistence layer could not be reached or failed mid-operation."""
