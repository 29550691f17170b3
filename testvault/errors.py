"""Error taxonomy for testvault.

Token invalidity is not an exception: `SecureTokenCodec.verify_token` returns
None. Policy and schema checks return a `ValidationResult` instead of raising.
"""
from typing import List, Optional


class VaultError(Exception):
    """Base class for all testvault errors."""


class EncryptionError(VaultError):
    """The cipher primitive failed while encrypting."""


class DecryptionError(VaultError):
    """Malformed encrypted blob, or the decrypt/unpad step failed."""


class KeyConfigurationError(VaultError, RuntimeError):
    """No encryption key is configured and dev mode is off."""


class ValidationError(VaultError, ValueError):
    """A policy or schema rule was violated.

    Args:
        message: Human readable message
        errors: Individual rule violations, if known
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class PasswordPolicyError(ValidationError):
    """Password generation cannot satisfy the requested options."""


class DataFileNotFoundError(VaultError, FileNotFoundError):
    """A requested test data file does not exist."""


class UnknownScenarioError(VaultError, ValueError):
    """No generator is registered for the requested scenario."""


class CredentialNotConfiguredError(VaultError):
    """A role has no encrypted password configured."""


class CleanupHookError(VaultError):
    """A cleanup hook failed. Logged at the call site, never propagated."""

    def __init__(self, hook_name: str, cause: BaseException):
        super().__init__(f"Cleanup hook {hook_name} failed: {cause}")
        self.hook_name = hook_name
        self.cause = cause
