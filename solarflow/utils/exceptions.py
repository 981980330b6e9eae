"""
Domain exceptions.

Caller errors (invalid amount, not found, already completed, notes required,
not assigned, invalid referral/settings, duplicate distribution) are raised
before any write. IntegrationFailureError wraps a failed downstream write.
"""


class BookingLifecycleError(Exception):
    """Base exception for the booking lifecycle and incentive engine."""

    code = "ERROR"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidAmountError(BookingLifecycleError):
    """Raised when a gross amount is non-positive or non-finite."""

    code = "INVALID_AMOUNT"


class NotFoundError(BookingLifecycleError):
    """Raised for an unknown customer, booking or step."""

    code = "NOT_FOUND"


class AlreadyCompletedError(BookingLifecycleError):
    """Raised on a duplicate step completion attempt."""

    code = "ALREADY_COMPLETED"


class NotesRequiredError(BookingLifecycleError):
    """Raised when staff completes a step without notes."""

    code = "NOTES_REQUIRED"


class NotAssignedError(BookingLifecycleError):
    """Raised when staff acts on a booking assigned to someone else."""

    code = "NOT_ASSIGNED"


class IntegrationFailureError(BookingLifecycleError):
    """Raised when a downstream write (ledger, wallet, certificate) fails."""

    code = "INTEGRATION_FAILURE"


class DuplicateDistributionError(BookingLifecycleError):
    """Raised when commission was already distributed for a booking."""

    code = "DUPLICATE_DISTRIBUTION"


class InvalidReferralError(BookingLifecycleError):
    """Raised for self-referral, referral cycles or duplicate customers."""

    code = "INVALID_REFERRAL"


class InvalidSettingsError(BookingLifecycleError):
    """Raised when commission settings fail validation."""

    code = "INVALID_SETTINGS"
