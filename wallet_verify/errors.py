class WalletVerificationError(Exception):
    """Base class for errors raised by the nonce/verification core."""


class InvalidInput(WalletVerificationError):
    """The address given for nonce issuance is empty or not a hex address."""


class VerificationError(WalletVerificationError):
    """A submitted signature does not prove ownership of the claimed address."""


class MissingField(VerificationError):
    """One of address, signature, nonce or email is missing or empty."""

    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class NonceMismatch(VerificationError):
    """The presented nonce is not the one currently outstanding for the address."""


class SignatureMismatch(VerificationError):
    """The signature does not recover to the claimed address (or is malformed)."""


class NotificationError(Exception):
    """The mail transport is not configured or refused the alert."""
