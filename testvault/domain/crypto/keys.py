"""Key derivation for the symmetric cipher and token codec."""
import hashlib
import re
import secrets

HEX_KEY_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")


def derive_key(passphrase: str) -> str:
    """Turn a passphrase into a 256-bit key as 64 hex characters.

    If passphrase is already 64 hex chars, it's used unchanged.
    Otherwise, it's hashed with SHA-256.
    """
    if HEX_KEY_PATTERN.match(passphrase):
        return passphrase
    return hashlib.sha256(passphrase.encode("utf-8")).hexdigest()


def generate_key(length: int = 32) -> str:
    """Generate a random key of `length` bytes, hex encoded."""
    return secrets.token_hex(length)
