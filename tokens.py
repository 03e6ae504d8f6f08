"""Signed, time-limited admin tokens.

Tokens are stateless: validity is the signature plus the embedded expiry.
There is no revocation list, so a leaked token stays valid until it expires.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

logger = logging.getLogger(__name__)


class InvalidToken(Exception):
    """Malformed, tampered or expired token. The cause is deliberately not exposed."""


class TokenConfigError(RuntimeError):
    """The service cannot sign or verify anything, e.g. no secret configured."""


@dataclass(frozen=True)
class Principal:
    id: str
    email: str


class TokenService:
    def __init__(self, secret: str, lifetime: timedelta = timedelta(days=7), algorithm: str = "HS256"):
        self.secret = secret
        self.lifetime = lifetime
        self.algorithm = algorithm

    def _require_secret(self) -> str:
        if not self.secret:
            raise TokenConfigError("Token signing secret is not configured")
        return self.secret

    def issue(self, principal: Principal, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "id": principal.id,
            "email": principal.email,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(payload, self._require_secret(), algorithm=self.algorithm)

    def verify(self, token: str) -> Principal:
        secret = self._require_secret()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "id", "email"]},
            )
        except jwt.PyJWTError as e:
            logger.debug("Token rejected: %s", type(e).__name__)
            raise InvalidToken() from e
        if not isinstance(payload["id"], str) or not isinstance(payload["email"], str):
            raise InvalidToken()
        return Principal(id=payload["id"], email=payload["email"])
