"""Signed, time-limited session tokens.

Tokens are stateless HS256 JWTs carrying the user id (`sub`) and an absolute
expiry (`exp`). Nothing is stored server-side, so a token stays valid until it
expires; there is no revocation.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import jwt

from ..errors import InvalidTokenError
from ..models.base import is_row_id

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "HS256"
DEFAULT_LIFETIME = timedelta(days=30)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies bearer tokens with a fixed signing key.

    The key is handed in at construction and never changes for the lifetime
    of the instance, so one instance can be shared across concurrent requests.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        lifetime: timedelta = DEFAULT_LIFETIME,
        algorithm: str = DEFAULT_ALGORITHM,
        clock: Optional[Clock] = None,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self._lifetime = lifetime
        self._algorithm = algorithm
        self._clock = clock or utc_now

    def issue(self, user_id: int) -> str:
        """Return a signed token for `user_id` expiring one lifetime from now."""

        issued_at = self._clock()
        payload = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._lifetime).timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> int:
        """Return the user id carried by `token` or raise InvalidTokenError."""

        payload = self._decode(token)
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        if self._clock() > expires_at:
            raise InvalidTokenError("Token has expired")

        subject = payload["sub"]
        if not isinstance(subject, str) or not (subject.isascii() and subject.isdigit()):
            raise InvalidTokenError("Malformed token subject")
        if not is_row_id(int(subject)):
            raise InvalidTokenError("Malformed token subject")
        return int(subject)

    def expires_at(self, token: str) -> datetime:
        """Absolute expiry of a token this service issued."""

        return datetime.fromtimestamp(self._decode(token)["exp"], tz=timezone.utc)

    def _decode(self, token: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                # expiry is compared against the injected clock in verify()
                options={"require": ["sub", "exp"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.PyJWTError as exc:
            logger.debug("Token rejected: %s", exc.__class__.__name__)
            raise InvalidTokenError("Could not validate token") from exc

        if not isinstance(payload.get("exp"), (int, float)):
            raise InvalidTokenError("Malformed token expiry")
        return payload
