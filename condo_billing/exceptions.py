"""Custom exception hierarchy for condo-billing."""


class CondoBillingError(Exception):
    """Base exception for all condo-billing errors."""


class EntityNotFoundError(CondoBillingError):
    """Raised when a referenced entity does not exist."""


class RecordNotFoundError(EntityNotFoundError):
    """Raised when an update or confirmation targets a missing payment record."""


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class InvalidTransitionError(CondoBillingError):
    """Raised when a payment record cannot move to the requested state."""


class StaleRecordError(InvalidTransitionError):
    """Raised when a record changed status between read and write."""


class DuplicateRecordError(CondoBillingError):
    """Raised when a resident already has a record for the billing period."""


class RecordWriteFailedError(CondoBillingError):
    """A single record failed inside a batch operation.

    Batch operations collect these instead of raising them so the caller
    can retry just the failed subset.
    """

    def __init__(self, key: str, cause: BaseException) -> None:
        super().__init__(f"Failed to write record for {key}: {cause}")
        self.key = key
        self.cause = cause


class StoreUnavailableError(CondoBillingError):
    """Raised when the billing database cannot be reached."""


class ConfigurationError(CondoBillingError):
    """Raised when configuration is invalid or missing."""


class ConfigurationMissingError(ConfigurationError):
    """Raised when a building has no billing configuration and no default applies."""


class SinkError(CondoBillingError):
    """Raised when a sink operation fails."""
