# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi.testclient import TestClient

from wallet_verify.main import app
from wallet_verify.nonce_store import NonceStore, get_nonce_store
from wallet_verify.services.notification_service import get_notifier
from wallet_verify.services.verification_service import build_signing_message

ALICE_KEY = "0x" + "11" * 32
BOB_KEY = "0x" + "22" * 32


class RecordingNotifier:
    """Stands in for SmtpNotifier and remembers every alert."""

    configured = True

    def __init__(self, error: Exception | None = None) -> None:
        self.sent: list[dict[str, Any]] = []
        self.error = error

    def send(self, to_address_email, to_monitoring_email, subject, body_fields) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append(
            {
                "to": to_address_email,
                "monitoring": to_monitoring_email,
                "subject": subject,
                "fields": body_fields,
            }
        )


def sign_text(private_key: str, text: str) -> str:
    signed = Account.sign_message(encode_defunct(text=text), private_key=private_key)
    return "0x" + bytes(signed.signature).hex()


def sign_nonce(private_key: str, nonce: str) -> str:
    return sign_text(private_key, build_signing_message(nonce))


@pytest.fixture
def alice() -> Any:
    return Account.from_key(ALICE_KEY)


@pytest.fixture
def bob() -> Any:
    return Account.from_key(BOB_KEY)


@pytest.fixture
def store() -> NonceStore:
    return NonceStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def client(store: NonceStore, notifier: RecordingNotifier) -> Iterator[TestClient]:
    app.dependency_overrides[get_nonce_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def signer() -> Callable[[str, str], str]:
    return sign_nonce
