"""Fernet encryption for reading payloads at rest.

Keys are configured as a comma-separated list. The first key encrypts; every
key is tried on decrypt, so a new key can be prepended and old rows rotated
with :meth:`PayloadEncryptor.rotate` without downtime.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when a key is unusable or a payload cannot be (de)crypted."""


def parse_keys(raw: str) -> list[str]:
    """Split a comma-separated key setting, dropping blanks."""
    return [part.strip() for part in raw.split(",") if part.strip()]


class PayloadEncryptor:
    """Encrypts JSON-serializable payloads with one or more Fernet keys.

    Usage::

        enc = PayloadEncryptor(PayloadEncryptor.generate_key())
        token = enc.encrypt({"notes": "Pulse: 82 BPM", "pulse": 82})
        enc.decrypt(token)  # {"notes": "Pulse: 82 BPM", "pulse": 82}
    """

    def __init__(self, keys: str | list[str]) -> None:
        key_list = parse_keys(keys) if isinstance(keys, str) else [k for k in keys if k]
        if not key_list:
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = MultiFernet([Fernet(k.encode()) for k in key_list])
        except ValueError as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc
        self._key_count = len(key_list)

    @property
    def key_count(self) -> int:
        return self._key_count

    def encrypt(self, payload: Any) -> str:
        """Return a Fernet token for ``payload``; empty payloads encrypt to ""."""
        if payload is None or payload == {}:
            return ""
        try:
            plaintext = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Payload is not JSON-serializable: {exc}") from exc
        return self._fernet.encrypt(plaintext).decode("utf-8")

    def decrypt(self, token: str) -> Any:
        """Inverse of :meth:`encrypt`; "" decrypts to an empty dict."""
        if not token:
            return {}
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"))
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        return json.loads(plaintext)

    def rotate(self, token: str) -> str:
        """Re-encrypt ``token`` under the primary (first) key."""
        if not token:
            return ""
        try:
            return self._fernet.rotate(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise EncryptionError("Rotation failed: token not readable by any key") from exc

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("utf-8")
