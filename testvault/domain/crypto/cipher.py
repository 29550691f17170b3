"""AES-256-CBC encryption for credentials and test data.

Encrypted values use the `<iv hex>:<ciphertext hex>` encoding so that fixture
files encrypted by earlier tooling stay readable.
"""
import binascii
import hashlib
import hmac
import json
import logging
import os
from typing import Any

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from testvault.domain.crypto.keys import derive_key
from testvault.errors import DecryptionError, EncryptionError

logger = logging.getLogger(__name__)

ALGORITHM_AES_256_CBC = "aes-256-cbc"
IV_LENGTH = 16
BLOCK_SIZE_BITS = 128


class SymmetricCipher:
    """Encrypts strings and JSON payloads with a key derived once at construction."""

    algorithm = ALGORITHM_AES_256_CBC

    def __init__(self, passphrase: str):
        self._key_hex = derive_key(passphrase)
        self._key = binascii.unhexlify(self._key_hex)

    @property
    def key(self) -> str:
        """Hex form of the derived key."""
        return self._key_hex

    def encrypt(self, plaintext: str) -> str:
        try:
            iv = os.urandom(IV_LENGTH)
            padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
            padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

            encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
        except Exception as e:
            logger.error(f"Encryption error: {type(e).__name__}")
            raise EncryptionError("Failed to encrypt data") from e

        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self, blob: str) -> str:
        iv, ciphertext = self._parse_blob(blob)
        try:
            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()

            unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except Exception as e:
            # Wrong key, corrupted ciphertext and bad padding all look the same
            raise DecryptionError("Failed to decrypt data") from e

    def encrypt_json(self, value: Any) -> str:
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise EncryptionError("Failed to serialize test data") from e
        return self.encrypt(serialized)

    def decrypt_json(self, blob: str) -> Any:
        plaintext = self.decrypt(blob)
        try:
            return json.loads(plaintext)
        except json.JSONDecodeError as e:
            raise DecryptionError("Failed to decrypt test data") from e

    @staticmethod
    def hash(plaintext: str) -> str:
        """One-way SHA-256 digest, hex encoded. Independent of the key."""
        return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()

    def verify_hash(self, plaintext: str, digest: Any) -> bool:
        if not isinstance(digest, str):
            return False
        return hmac.compare_digest(self.hash(plaintext).encode("utf-8"), digest.encode("utf-8"))

    @staticmethod
    def _parse_blob(blob: str):
        parts = blob.split(":") if isinstance(blob, str) else []
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise DecryptionError("Invalid encrypted data format")

        try:
            iv = binascii.unhexlify(parts[0])
            ciphertext = binascii.unhexlify(parts[1])
        except (binascii.Error, ValueError) as e:
            raise DecryptionError("Invalid encrypted data format") from e

        if len(iv) != IV_LENGTH:
            raise DecryptionError("Invalid encrypted data format")
        return iv, ciphertext
