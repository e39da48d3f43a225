"""Authenticated encryption of tenant connection secrets.

Secrets are sealed with AES-256-GCM. Ciphertext, nonce and tag are stored
hex encoded in three separate catalog columns.
"""

import secrets
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from tenant_db.core.constants import ENCRYPTION_KEY_BYTES, GCM_NONCE_BYTES, GCM_TAG_BYTES
from tenant_db.core.errors import ConfigurationError, DecryptionError


def generate_encryption_key() -> str:
    """Generate a new 32-byte key, hex encoded."""
    return secrets.token_hex(ENCRYPTION_KEY_BYTES)


@dataclass(frozen=True)
class EncryptedSecret:
    """A sealed secret as persisted in the catalog."""

    ciphertext: str
    iv: str
    tag: str


class CredentialVault:
    """AES-256-GCM encryption for connection strings.

    Example:
        vault = CredentialVault(settings.encryption_key)
        sealed = vault.encrypt("postgresql://...")
        plaintext = vault.decrypt(sealed)
    """

    def __init__(self, key: str | bytes) -> None:
        """Initialize the vault.

        Args:
            key: 32-byte key, raw or hex encoded

        Raises:
            ConfigurationError: If the key is not 32 bytes
        """
        if isinstance(key, str):
            try:
                key = bytes.fromhex(key)
            except ValueError as e:
                raise ConfigurationError("Encryption key must be hex encoded") from e
        if len(key) != ENCRYPTION_KEY_BYTES:
            raise ConfigurationError(
                f"Encryption key must be {ENCRYPTION_KEY_BYTES} bytes",
                details={"length": len(key)},
            )
        self._aesgcm = AESGCM(key)

    def encrypt(self, plaintext: str) -> EncryptedSecret:
        """Encrypt a string with a fresh random nonce.

        Args:
            plaintext: Secret to seal

        Returns:
            Hex encoded ciphertext, nonce and authentication tag
        """
        nonce = secrets.token_bytes(GCM_NONCE_BYTES)
        sealed = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-GCM_TAG_BYTES], sealed[-GCM_TAG_BYTES:]
        return EncryptedSecret(
            ciphertext=ciphertext.hex(),
            iv=nonce.hex(),
            tag=tag.hex(),
        )

    def decrypt(self, secret: EncryptedSecret) -> str:
        """Decrypt and authenticate a sealed secret.

        Args:
            secret: Value produced by encrypt()

        Returns:
            The original plaintext

        Raises:
            DecryptionError: If the data was tampered with or the key is wrong
        """
        try:
            sealed = bytes.fromhex(secret.ciphertext) + bytes.fromhex(secret.tag)
            plaintext = self._aesgcm.decrypt(bytes.fromhex(secret.iv), sealed, None)
        except (InvalidTag, ValueError) as e:
            raise DecryptionError() from e
        return plaintext.decode("utf-8")
