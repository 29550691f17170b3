"""Recursive encryption of sensitive fields in nested test data.

Both walks share SENSITIVE_KEYS. A key matches when its lowercased form is in
the set, so `apiKey` matches and `api_key` does not. Pass
ignore_separators=True to also match snake-case and kebab-case keys.

Decryption is tolerant by default: a value that fails to decrypt is left
as-is. Pass strict=True to raise instead.
"""
import copy
import logging
from collections.abc import Mapping
from typing import Any, Callable

from testvault.domain.crypto.cipher import SymmetricCipher
from testvault.errors import DecryptionError

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = frozenset({"password", "apikey", "token", "secret", "key"})


def is_sensitive_key(key: Any, ignore_separators: bool = False) -> bool:
    if not isinstance(key, str):
        return False
    normalized = key.lower()
    if ignore_separators:
        normalized = normalized.replace("_", "").replace("-", "")
    return normalized in SENSITIVE_KEYS


def _walk(value: Any, transform: Callable[[str], str], ignore_separators: bool = False) -> Any:
    if isinstance(value, Mapping):
        result = {}
        for key, item in value.items():
            if is_sensitive_key(key, ignore_separators) and isinstance(item, str):
                result[key] = transform(item)
            else:
                result[key] = _walk(item, transform, ignore_separators)
        return result
    if isinstance(value, (list, tuple)):
        return [_walk(item, transform, ignore_separators) for item in value]
    return value


class SensitiveFieldWalker:
    def __init__(self, cipher: SymmetricCipher, ignore_separators: bool = False):
        self.cipher = cipher
        self.ignore_separators = ignore_separators

    def encrypt_sensitive_fields(self, data: Any) -> Any:
        return _walk(copy.deepcopy(data), self.cipher.encrypt, self.ignore_separators)

    def decrypt_sensitive_fields(self, data: Any, strict: bool = False) -> Any:
        def decrypt(value: str) -> str:
            try:
                return self.cipher.decrypt(value)
            except DecryptionError:
                if strict:
                    raise
                logger.debug("Leaving sensitive field as-is: value did not decrypt")
                return value

        return _walk(copy.deepcopy(data), decrypt, self.ignore_separators)
