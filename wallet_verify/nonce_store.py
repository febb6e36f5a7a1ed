# wallet_verify/nonce_store.py

import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict

from web3 import Web3

from .errors import InvalidInput

logger = logging.getLogger(__name__)

NONCE_UPPER_BOUND = 1_000_000


def canonical_address(address: str) -> str:
    """Lowercase form used for every lookup and comparison."""
    return address.strip().lower()


def generate_nonce() -> str:
    """Random decimal string in [0, NONCE_UPPER_BOUND)."""
    return str(secrets.randbelow(NONCE_UPPER_BOUND))


@dataclass(frozen=True)
class NonceRecord:
    address: str
    value: str
    issued_at: datetime


class NonceStore:
    """
    Keeps the single outstanding nonce of each address.

    Issuing for an address replaces whatever nonce it had; consuming removes it,
    so a nonce is either used once or overwritten. Everything lives in memory
    and is lost on restart.
    """

    def __init__(self, nonce_generator: Callable[[], str] = generate_nonce):
        self._generate = nonce_generator
        self._records: Dict[str, NonceRecord] = {}
        self._lock = threading.Lock()

    def issue(self, address: str | None) -> str:
        """Create (or replace) the nonce for `address` and return its value."""
        if not address or not address.strip():
            raise InvalidInput("Address required")
        key = canonical_address(address)
        # Checksum casing is irrelevant here, so validate the lowercased form.
        # Recovered signers always carry the 0x prefix, so require it.
        if not key.startswith("0x") or not Web3.is_address(key):
            raise InvalidInput(f"Invalid address: {address}")

        record = NonceRecord(address=key, value=self._generate(), issued_at=datetime.now(timezone.utc))
        with self._lock:
            replaced = self._records.get(key)
            self._records[key] = record
        if replaced:
            logger.debug(f"Replaced outstanding nonce for {key}")
        return record.value

    def peek(self, address: str) -> str | None:
        """Outstanding nonce for `address`, without consuming it."""
        with self._lock:
            record = self._records.get(canonical_address(address))
        return record.value if record else None

    def consume(self, address: str, expected: str | None = None) -> str | None:
        """
        Remove and return the outstanding nonce; None if there is none.

        With `expected`, the record is only removed when its value matches, so a
        nonce issued after the caller's check is left in place.
        """
        key = canonical_address(address)
        with self._lock:
            record = self._records.get(key)
            if record is None or (expected is not None and record.value != expected):
                return None
            del self._records[key]
        logger.debug(f"Consumed nonce for {record.address} issued at {record.issued_at.isoformat()}")
        return record.value

    def clear(self) -> None:
        with self._lock:
            count = len(self._records)
            self._records.clear()
        logger.info(f"Cleared {count} outstanding nonce(s)")

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


# --- Process-wide store ---
# WARNING: This is lost on server restart!
_nonce_store = NonceStore()

def get_nonce_store() -> NonceStore:
    """FastAPI dependency returning the process-wide nonce store."""
    return _nonce_store
