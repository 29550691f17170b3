"""Password generation and password policy validation.

Generated passwords are test data, not key material.
"""
import re
import secrets
import string
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from testvault.errors import PasswordPolicyError

LOWERCASE = string.ascii_lowercase
UPPERCASE = string.ascii_uppercase
NUMBERS = string.digits
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

_UPPER_RE = re.compile(r"[A-Z]")
_LOWER_RE = re.compile(r"[a-z]")
_NUMBER_RE = re.compile(r"\d")
_SYMBOL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{}|;:,.<>?]")

MAX_POLICY_ATTEMPTS = 1000


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


class PasswordPolicy(BaseModel):
    min_length: int = Field(default=8, ge=0)
    max_length: int = Field(default=128, ge=1)
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_numbers: bool = True
    require_symbols: bool = False


def generate_secure_password(
    length: int = 12,
    include_uppercase: bool = True,
    include_lowercase: bool = True,
    include_numbers: bool = True,
    include_symbols: bool = True,
) -> str:
    """Draw `length` characters uniformly from the enabled character classes."""
    if length < 1:
        raise PasswordPolicyError(f"Password length must be positive, got {length}")

    charset = ""
    if include_lowercase:
        charset += LOWERCASE
    if include_uppercase:
        charset += UPPERCASE
    if include_numbers:
        charset += NUMBERS
    if include_symbols:
        charset += SYMBOLS

    if not charset:
        raise PasswordPolicyError("At least one character class must be enabled")

    return "".join(secrets.choice(charset) for _ in range(length))


def generate_test_passwords(count: int = 5, length: int = 12, **options) -> List[str]:
    return [generate_secure_password(length, **options) for _ in range(count)]


def create_password_validator(policy: Optional[PasswordPolicy] = None) -> Callable[[str], ValidationResult]:
    """Build a validator that reports every violated rule at once."""
    policy = policy or PasswordPolicy()

    def validate(password: str) -> ValidationResult:
        errors = []

        if len(password) < policy.min_length:
            errors.append(f"Password must be at least {policy.min_length} characters long")

        if len(password) > policy.max_length:
            errors.append(f"Password must be no more than {policy.max_length} characters long")

        if policy.require_uppercase and not _UPPER_RE.search(password):
            errors.append("Password must contain at least one uppercase letter")

        if policy.require_lowercase and not _LOWER_RE.search(password):
            errors.append("Password must contain at least one lowercase letter")

        if policy.require_numbers and not _NUMBER_RE.search(password):
            errors.append("Password must contain at least one number")

        if policy.require_symbols and not _SYMBOL_RE.search(password):
            errors.append("Password must contain at least one symbol")

        return ValidationResult(is_valid=not errors, errors=errors)

    return validate


def generate_policy_compliant_password(policy: Optional[PasswordPolicy] = None) -> str:
    """Generate passwords until one satisfies `policy`."""
    policy = policy or PasswordPolicy()
    if policy.min_length > policy.max_length:
        raise PasswordPolicyError("min_length cannot exceed max_length")

    validate = create_password_validator(policy)
    length = min(max(policy.min_length, 12), policy.max_length)

    for _ in range(MAX_POLICY_ATTEMPTS):
        candidate = generate_secure_password(
            length,
            include_uppercase=True,
            include_lowercase=True,
            include_numbers=True,
            include_symbols=policy.require_symbols,
        )
        if validate(candidate).is_valid:
            return candidate

    raise PasswordPolicyError(f"Could not generate a password satisfying the policy in {MAX_POLICY_ATTEMPTS} attempts")
