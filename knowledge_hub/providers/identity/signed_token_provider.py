"""HMAC-signed bearer tokens for the knowledge hub write routes.

# ─── HOW TOKENS WORK ─────────────────────────────────────────────────
#
# Tokens are stateless: no session table, just a signed payload.
#
# Token format:  {payload_b64}.{hmac_hex_digest}
#   - payload_b64: urlsafe base64 of JSON {"id", "role", "department", "iat"}
#   - hmac:        HMAC-SHA256(secret, payload_b64)
#
# Validation checks:
#   1. Token has the two-part shape
#   2. HMAC signature is valid (constant-time comparison)
#   3. Payload decodes and carries id + role
#   4. "iat" is within the TTL window
#
# Uses only Python stdlib (hmac, hashlib, base64, json, time).
# ─────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import time

import structlog

from knowledge_hub.interfaces.identity_provider import IIdentityProvider
from knowledge_hub.models.article import Identity
from knowledge_hub.utils.errors import AuthenticationError, ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


class SignedTokenIdentityProvider(IIdentityProvider):
    """Issues and verifies HMAC-signed identity tokens.

    Parameters
    ----------
    secret:
        Shared signing secret.  Must be non-empty.
    ttl_hours:
        Maximum token age before it is rejected.
    """

    def __init__(self, secret: str, ttl_hours: int = 8) -> None:
        if not secret:
            raise ConfigurationError(
                "A signing secret is required for token authentication",
                provider_name="signed_token",
            )
        self._secret = secret.encode("utf-8")
        self._ttl_seconds = ttl_hours * 3600

    def get_provider_name(self) -> str:
        return "signed_token"

    def _sign(self, payload_b64: str) -> str:
        return hmac.new(self._secret, payload_b64.encode("ascii"), hashlib.sha256).hexdigest()

    def issue_token(self, identity: Identity, issued_at: int | None = None) -> str:
        """Return a signed token carrying *identity*."""
        payload = {
            "id": identity.id,
            "role": identity.role,
            "department": identity.department,
            "iat": int(time.time()) if issued_at is None else issued_at,
        }
        raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        payload_b64 = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
        return f"{payload_b64}.{self._sign(payload_b64)}"

    def authenticate(self, token: str | None) -> Identity:
        if not token:
            raise AuthenticationError("Missing token", provider_name=self.get_provider_name())

        payload_b64, sep, signature = token.strip().partition(".")
        if not sep or not payload_b64 or not signature:
            raise AuthenticationError("Malformed token", provider_name=self.get_provider_name())

        if not hmac.compare_digest(self._sign(payload_b64), signature):
            logger.warning("token_signature_invalid")
            raise AuthenticationError("Invalid token", provider_name=self.get_provider_name())

        try:
            padded = payload_b64 + "=" * (-len(payload_b64) % 4)
            payload = json.loads(base64.urlsafe_b64decode(padded))
            identity = Identity(
                id=str(payload["id"]),
                role=str(payload["role"]),
                department=payload.get("department"),
            )
            issued_at = int(payload["iat"])
        except (binascii.Error, ValueError, KeyError, TypeError):
            raise AuthenticationError(
                "Malformed token payload", provider_name=self.get_provider_name()
            ) from None

        if time.time() - issued_at > self._ttl_seconds:
            raise AuthenticationError("Token expired", provider_name=self.get_provider_name())

        return identity
