from eth_account import Account
from eth_account.messages import encode_defunct
from dataclasses import dataclass
from typing import Callable
import logging

from ..errors import MissingField, NonceMismatch, SignatureMismatch
from ..models.wallet_models import VerifyRequest
from ..nonce_store import NonceStore, canonical_address

logger = logging.getLogger(__name__)

SIGNING_MESSAGE_PREFIX = "Sign to verify ownership:"
REQUIRED_FIELDS = ("address", "signature", "nonce", "email")


def build_signing_message(nonce: str) -> str:
    """The exact text the wallet must sign for `nonce`."""
    return f"{SIGNING_MESSAGE_PREFIX}\nNonce: {nonce}"


def recover_signer(message: str, signature: str) -> str:
    """Recovers the address that produced an EIP-191 personal_sign signature over `message`."""
    return Account.recover_message(encode_defunct(text=message), signature=signature)


@dataclass(frozen=True)
class VerificationOutcome:
    address: str
    nonce: str


class VerificationService:
    """
    Decides whether a signed nonce proves control of an address.

    The nonce is only consumed once every check has passed; a failed attempt
    leaves it outstanding for a retry.
    """

    def __init__(self, store: NonceStore, recover: Callable[[str, str], str] = recover_signer):
        self.store = store
        self.recover = recover

    def verify(self, request: VerifyRequest) -> VerificationOutcome:
        for field in REQUIRED_FIELDS:
            if not getattr(request, field):
                raise MissingField(field)

        address = canonical_address(request.address)

        # Never issued and replaced by a newer request look the same here.
        stored_nonce = self.store.peek(address)
        if stored_nonce is None or stored_nonce != request.nonce:
            logger.warning(f"Invalid nonce | Address: {request.address}")
            raise NonceMismatch(f"Nonce is not valid for {address}")

        message = build_signing_message(request.nonce)
        try:
            recovered = self.recover(message, request.signature)
        except Exception as e:
            # Malformed signatures are an expected failure, not a server error
            logger.warning(f"Signature recovery failed | Address: {request.address} | Error: {e}")
            raise SignatureMismatch(f"Could not recover signer: {e}") from e

        if canonical_address(recovered) != address:
            logger.warning(f"Signature mismatch | Claimed: {request.address} | Recovered: {recovered}")
            raise SignatureMismatch(f"Signature was made by {recovered}")

        if self.store.consume(address, expected=request.nonce) is None:
            # A concurrent request consumed or replaced it after the peek
            logger.warning(f"Nonce already used | Address: {request.address}")
            raise NonceMismatch(f"Nonce already used for {address}")

        logger.debug(f"Nonce consumed | Address: {address}")
        return VerificationOutcome(address=address, nonce=request.nonce)
