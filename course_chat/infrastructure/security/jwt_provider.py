# course_chat/infrastructure/security/jwt_provider.py

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt

from course_chat.config.settings import Settings, settings as default_settings
from course_chat.core.exceptions import UnauthenticatedError


class JwtProvider:
    """Verifies bearer tokens from the identity provider.

    `issue_access_token` mirrors the provider's claim layout; the service
    itself only uses it for local tooling and tests.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        cfg = settings or default_settings
        self._secret = cfg.jwt_secret
        self._issuer = cfg.jwt_issuer
        self._audience = cfg.jwt_audience
        self._access_minutes = cfg.jwt_access_minutes
        self._algorithm = "HS256"

    def issue_access_token(self, *, subject: str, payload: dict | None = None, minutes: int = 0) -> str:
        now = datetime.now(tz=timezone.utc)
        ttl = minutes if minutes and minutes > 0 else self._access_minutes
        exp = now + timedelta(minutes=ttl)

        claims = {
            "iss": self._issuer,
            "aud": self._audience,
            "sub": str(subject),
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
            "jti": uuid4().hex,
        }
        claims.update(payload or {})
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> dict:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise UnauthenticatedError("Token expired.") from e
        except jwt.InvalidTokenError as e:
            raise UnauthenticatedError("Invalid token.") from e

    def user_id_from(self, token: str | None) -> str:
        if not token:
            raise UnauthenticatedError("Missing token.")
        sub = str(self.decode(token).get("sub") or "").strip()
        if not sub:
            raise UnauthenticatedError("Invalid token.")
        return sub
