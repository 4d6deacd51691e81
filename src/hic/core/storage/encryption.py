"""Fernet-based payload encryption for cached insights at rest.

Generated insights are derived from health data, so the cache stores them
encrypted whenever a key is configured. Several comma-separated keys may be
given (newest first); tokens written under an older key stay readable until
they expire, which allows key rotation without flushing the cache.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


class FieldEncryptor:
    """Encrypts and decrypts JSON-serializable data using Fernet symmetric encryption.

    Usage::

        encryptor = FieldEncryptor(key="new-key,old-key")
        encrypted = encryptor.encrypt({"overall": 72})
        decrypted = encryptor.decrypt(encrypted)  # {"overall": 72}
    """

    def __init__(self, key: str) -> None:
        """Initialize with one or more Fernet keys.

        Args:
            key: A valid Fernet key string, or several separated by commas
                with the encryption key first. Generate with
                ``FieldEncryptor.generate_key()``.

        Raises:
            EncryptionError: If no key is given or any key is invalid.
        """
        keys = [k.strip() for k in (key or "").split(",") if k.strip()]
        if not keys:
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = MultiFernet([Fernet(k.encode()) for k in keys])
        except ValueError as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc
        self.key_count = len(keys)

    def encrypt(self, data: Any) -> str:
        """Encrypt a JSON-serializable value to a Fernet token string.

        Raises:
            EncryptionError: If serialization or encryption fails.
        """
        if data is None:
            return ""
        try:
            plaintext = json.dumps(data, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Encryption failed: {exc}") from exc
        return self._fernet.encrypt(plaintext).decode("utf-8")

    def decrypt(self, token: str) -> Any:
        """Decrypt a Fernet token string back to a Python object.

        Raises:
            EncryptionError: If the token is invalid or no key matches.
        """
        if not token:
            return None
        try:
            plaintext = self._fernet.decrypt(token.encode("utf-8"))
            return json.loads(plaintext)
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        except ValueError as exc:
            raise EncryptionError(f"Decryption failed: {exc}") from exc

    def rotate(self, token: str) -> str:
        """Re-encrypt a token under the primary (first) key."""
        try:
            return self._fernet.rotate(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise EncryptionError("Rotation failed: invalid token or wrong key") from exc

    @staticmethod
    def generate_key() -> str:
        """Generate a new Fernet key.

        Returns:
            A URL-safe base64-encoded 32-byte key as a string.
        """
        return Fernet.generate_key().decode("utf-8")
