"""Credential helpers for test automation.

Combines the cipher, token codec and sensitive field walker into the
operations test suites use directly: role credentials from encrypted
settings, encrypted test users, and scenario tokens.
"""
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from testvault.domain.crypto.cipher import SymmetricCipher
from testvault.domain.crypto.keys import generate_key
from testvault.domain.crypto.tokens import SecureTokenCodec
from testvault.domain.interfaces import DataStore
from testvault.domain.passwords import generate_secure_password
from testvault.domain.sensitive import SensitiveFieldWalker
from testvault.errors import CredentialNotConfiguredError, DecryptionError
from testvault.settings import Settings

logger = logging.getLogger(__name__)

CREDENTIAL_FIELDS = ("password", "api_key", "token")
ROLES = ("admin", "user", "guest")

SCENARIO_TOKEN_TTL_MINUTES = 60
USER_TOKEN_TTL_MINUTES = 120


class CredentialHelper:
    def __init__(
        self,
        cipher: SymmetricCipher,
        tokens: SecureTokenCodec,
        store: Optional[DataStore] = None,
        settings: Optional[Settings] = None
    ):
        self.cipher = cipher
        self.tokens = tokens
        self.store = store
        self.settings = settings
        self.walker = SensitiveFieldWalker(cipher)

    def encrypt_credentials(self, credentials: Mapping[str, Any]) -> Dict[str, Any]:
        encrypted = dict(credentials)
        for field_name in CREDENTIAL_FIELDS:
            if encrypted.get(field_name):
                encrypted[field_name] = self.cipher.encrypt(encrypted[field_name])
        return encrypted

    def decrypt_credentials(self, credentials: Mapping[str, Any]) -> Dict[str, Any]:
        decrypted = dict(credentials)
        for field_name in CREDENTIAL_FIELDS:
            if decrypted.get(field_name):
                decrypted[field_name] = self.cipher.decrypt(decrypted[field_name])
        return decrypted

    def credentials_for_role(self, role: str) -> Dict[str, str]:
        """Return the decrypted username/password pair configured for `role`."""
        if self.settings is None:
            raise CredentialNotConfiguredError("No settings available to resolve role credentials")

        role = role.lower()
        if role not in ROLES:
            raise ValueError(f"Invalid user role: {role}")

        username = getattr(self.settings, f"{role}_username")
        encrypted_password = getattr(self.settings, f"encrypted_{role}_password")
        if not encrypted_password:
            raise CredentialNotConfiguredError(f"No encrypted password found for role: {role}")

        try:
            password = self.cipher.decrypt(encrypted_password)
        except DecryptionError as e:
            raise DecryptionError(f"Failed to decrypt password for role {role}: {e}") from e

        return {"username": username, "password": password}

    def create_secure_test_tokens(self, scenarios: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {**scenario, "secure_token": self.tokens.create_token(json.dumps(scenario), SCENARIO_TOKEN_TTL_MINUTES)}
            for scenario in scenarios
        ]

    def verify_secure_test_token(self, token: str) -> Optional[Any]:
        decoded = self.tokens.verify_token(token)
        if decoded is None:
            return None
        try:
            return json.loads(decoded["data"])
        except (TypeError, ValueError):
            return None

    def generate_encrypted_test_users(self, count: int = 3) -> List[Dict[str, Any]]:
        users = []
        for i in range(count):
            n = i + 1
            user = {
                "id": n,
                "username": f"testuser{n}@example.com",
                "password": generate_secure_password(12),
                "first_name": f"Test{n}",
                "last_name": f"User{n}",
                "role": ROLES[i] if i < len(ROLES) else "guest",
                "api_key": generate_key(32),
                "token": self.tokens.create_token(f"user{n}", USER_TOKEN_TTL_MINUTES),
            }
            users.append(self.encrypt_credentials(user))
        return users

    def generate_test_data_with_encryption(self, base_data: Mapping[str, Any]) -> Dict[str, Any]:
        test_data = json.loads(json.dumps(base_data))

        if "users" in test_data:
            users = []
            for user in test_data["users"]:
                encrypted = self.cipher.encrypt(user.get("password") or "defaultPassword123")
                users.append({**user, "password": encrypted, "encrypted_password": encrypted})
            test_data["users"] = users

        test_data["api_keys"] = {
            "test": self.cipher.encrypt("test-api-key-12345"),
            "staging": self.cipher.encrypt("staging-api-key-67890"),
            "production": self.cipher.encrypt("production-api-key-abcdef"),
        }

        test_data["tokens"] = {
            "access": self.tokens.create_token("access-token", 60),
            "refresh": self.tokens.create_token("refresh-token", 1440),
            "admin": self.tokens.create_token("admin-token", 480),
        }

        return test_data

    def save_encrypted_test_data(self, name: str, data: Any, category: str = "fixtures") -> str:
        if self.store is None:
            raise ValueError("A data store is required to save test data")
        path = self.store.write(category, name, self.walker.encrypt_sensitive_fields(data))
        logger.info(f"Encrypted test data saved to: {path}")
        return path

    def load_encrypted_test_data(self, name: str, category: str = "fixtures", strict: bool = False) -> Any:
        if self.store is None:
            raise ValueError("A data store is required to load test data")
        return self.walker.decrypt_sensitive_fields(self.store.read(category, name), strict=strict)
