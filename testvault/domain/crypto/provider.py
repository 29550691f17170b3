"""Factory functions for the configured cipher and token codec."""
import logging
from typing import Optional

from testvault.domain.crypto.cipher import SymmetricCipher
from testvault.domain.crypto.tokens import SecureTokenCodec
from testvault.errors import KeyConfigurationError
from testvault.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Only ever used when DEV_MODE is enabled
INSECURE_DEV_PASSPHRASE = "insecure-dev-key-change-me-do-not-use-outside-dev"


def resolve_passphrase(settings: Optional[Settings] = None) -> str:
    """Return the configured key material.

    Production preference: ENCRYPTION_KEY must be set. The insecure
    development passphrase is only returned when DEV_MODE is on.
    """
    settings = settings or get_settings()
    if settings.encryption_key:
        return settings.encryption_key

    if settings.dev_mode:
        logger.warning("ENCRYPTION_KEY not set; using insecure development key (DEV_MODE)")
        return INSECURE_DEV_PASSPHRASE

    raise KeyConfigurationError("ENCRYPTION_KEY must be set when DEV_MODE is disabled.")


def get_cipher(settings: Optional[Settings] = None) -> SymmetricCipher:
    return SymmetricCipher(resolve_passphrase(settings))


def get_token_codec(settings: Optional[Settings] = None) -> SecureTokenCodec:
    return SecureTokenCodec(resolve_passphrase(settings))
