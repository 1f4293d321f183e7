"""At-rest encryption for stored TrainerRoad cookie bundles.

A stored bundle is as good as the athlete's password, so when
``COOKIE_ENCRYPTION_KEY`` is set the ``cookie_bundle`` column holds Fernet
tokens instead of ``name=value`` pairs.

The setting may list several comma-separated keys. The first one encrypts;
all of them are tried on decrypt, which lets an operator rotate keys without
logging every user out.
"""

import os
from typing import List, Optional

from cryptography.fernet import Fernet, InvalidToken, MultiFernet


class CookieEncryptionError(Exception):
    """Raised when a key is unusable or a stored bundle cannot be decrypted."""
    pass


def _split_keys(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


class CookieEncryption:
    """
    Fernet wrapper for cookie bundles.

    Usage:
        encryption = CookieEncryption(settings.cookie_encryption_key)
        token = encryption.encrypt(bundle.serialize())
        bundle = SessionBundle.from_string(encryption.decrypt(token))
    """

    def __init__(self, key: Optional[str] = None):
        raw = key or os.getenv("COOKIE_ENCRYPTION_KEY") or ""
        keys = _split_keys(raw)
        if not keys:
            raise CookieEncryptionError(
                "COOKIE_ENCRYPTION_KEY not set. "
                "Generate one with: CookieEncryption.generate_key()"
            )

        fernets = []
        for index, value in enumerate(keys):
            try:
                fernets.append(Fernet(value.encode()))
            except (ValueError, TypeError) as e:
                raise CookieEncryptionError(
                    f"Cookie encryption key #{index + 1} is not a valid Fernet key: {e}"
                )
        self._fernet = MultiFernet(fernets)
        self.key_count = len(fernets)

    @classmethod
    def optional(cls, key: Optional[str]) -> Optional["CookieEncryption"]:
        """Encryption for ``key``, or None when no key is configured."""
        return cls(key) if key and _split_keys(key) else None

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a serialized bundle with the primary key."""
        if not plaintext:
            raise CookieEncryptionError("Cannot encrypt empty string")
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt with any configured key.

        Raises:
            CookieEncryptionError: Wrong key, corrupted or tampered token.
        """
        if not ciphertext:
            raise CookieEncryptionError("Cannot decrypt empty string")
        try:
            return self._fernet.decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken:
            raise CookieEncryptionError(
                "Stored cookie bundle could not be decrypted with any configured key"
            )

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("utf-8")
