"""Signed, expiring tokens.

Wire format: `base64(JSON{data, timestamp, expiry}).hex(HMAC-SHA256)`, with
millisecond epoch timestamps. The HMAC is computed over the base64 segment
using the hex key string as key material.
"""
import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from testvault.domain.crypto.keys import derive_key

logger = logging.getLogger(__name__)

DEFAULT_TTL_MINUTES = 60
MS_PER_MINUTE = 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


class SecureTokenCodec:
    def __init__(self, passphrase: str, clock: Callable[[], int] = now_ms):
        self._key_hex = derive_key(passphrase)
        self._clock = clock

    def _sign(self, payload_segment: str) -> str:
        return hmac.new(
            self._key_hex.encode("utf-8"),
            payload_segment.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def create_token(self, data: str, ttl_minutes: float = DEFAULT_TTL_MINUTES) -> str:
        """Create a token for `data` valid for `ttl_minutes`.

        A zero or negative TTL yields a token that is already expired.
        """
        timestamp = self._clock()
        payload = {
            "data": data,
            "timestamp": timestamp,
            "expiry": timestamp + int(ttl_minutes * MS_PER_MINUTE),
        }
        segment = base64.b64encode(
            json.dumps(payload, separators=(",", ":")).encode("utf-8")
        ).decode("ascii")
        return f"{segment}.{self._sign(segment)}"

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Return the decoded payload, or None if the token is untrusted.

        Malformed, tampered and expired tokens are all treated the same way.
        """
        if not isinstance(token, str):
            return None

        parts = token.split(".")
        if len(parts) != 2:
            return None

        segment, signature = parts
        if not hmac.compare_digest(signature.encode("utf-8"), self._sign(segment).encode("utf-8")):
            return None

        try:
            payload = json.loads(base64.b64decode(segment, validate=True).decode("utf-8"))
            expiry = payload["expiry"]
        except (binascii.Error, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Token verification error: {type(e).__name__}")
            return None

        if not isinstance(expiry, (int, float)) or self._clock() >= expiry:
            return None

        return payload
