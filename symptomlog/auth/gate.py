"""Bearer-token authentication: token in, Identity out."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from symptomlog.auth import jwt
from symptomlog.utils.exceptions import Unauthorized

logger = logging.getLogger("symptomlog")


@dataclass(frozen=True)
class Identity:
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class IdentityVerifier(Protocol):
    def verify(self, token: str) -> Identity:
        """Return the identity behind `token` or raise Unauthorized."""
        ...


class JwtIdentityVerifier:
    """Verifies HS256 tokens issued with a shared secret."""

    def __init__(self, secret: str, algorithm: str = jwt.ALGORITHM):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self.secret = secret
        self.algorithm = algorithm

    def verify(self, token: str) -> Identity:
        payload = jwt.decode_token(token, self.secret, self.algorithm)
        if not payload:
            raise Unauthorized("Invalid or expired token")
        subject = payload.get("sub")
        if not subject or not isinstance(subject, str):
            raise Unauthorized("Token payload missing subject")
        return Identity(
            id=subject,
            email=payload.get("email"),
            display_name=payload.get("name"),
        )


class AuthGate:
    def __init__(self, verifier: IdentityVerifier):
        self.verifier = verifier

    def verify(self, token: Optional[str]) -> Identity:
        if token is None or not token.strip():
            raise Unauthorized("Missing bearer token")
        if any(ch.isspace() for ch in token):
            raise Unauthorized("Malformed bearer token")
        try:
            identity = self.verifier.verify(token)
        except Unauthorized:
            raise
        except Exception as exc:
            # Verifier outages are reported to the caller as a rejected token
            logger.warning({"function": "auth.verify", "status": "verifier_error", "error": repr(exc)})
            raise Unauthorized("Invalid or expired token") from exc
        if not isinstance(identity, Identity) or not identity.id:
            raise Unauthorized("Invalid or expired token")
        return identity
