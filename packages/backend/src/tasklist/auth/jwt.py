"""JWT token issuance and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
A token carries two claims that matter:
- user_id: the UUID of the user it was issued to
- exp: absolute expiry, 24 hours after issuance

There is no refresh token and no revocation list. When a token expires
the client logs in again.

The secret is a constructor argument, not a module global. The app builds
one TokenService from settings (see get_token_service); tests build their
own with throwaway keys.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from tasklist.errors import AuthError

# Only symmetric HMAC schemes. Pinning the list also blocks alg-confusion:
# a token claiming "none" or RS256 fails decode() with InvalidAlgorithmError.
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed bearer tokens for one secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=24),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"unsupported signing algorithm: {algorithm}")
        if not secret:
            raise ValueError("signing secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl
        self._clock = clock or _utcnow

    def __repr__(self) -> str:
        # Never show the secret
        return f"TokenService(algorithm={self.algorithm!r}, ttl={self.ttl!r})"

    def issue(self, user_id: uuid.UUID) -> str:
        """Create a token for user_id, valid for ttl from now."""
        # JWT timestamps are whole seconds; truncate so exp - iat == ttl exactly
        now = self._clock().replace(microsecond=0)
        payload = {
            "user_id": str(user_id),
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> uuid.UUID:
        """Return the user_id a valid token was issued to.

        Raises AuthError with reason expired, invalid_signature or malformed.
        """
        payload = self._decode(token)
        try:
            return uuid.UUID(str(payload["user_id"]))
        except ValueError:
            raise AuthError(AuthError.MALFORMED)

    def expires_at(self, token: str) -> datetime:
        """Expiry of a valid token as an aware UTC datetime."""
        payload = self._decode(token)
        return datetime.fromtimestamp(payload["exp"], tz=timezone.utc)

    def _decode(self, token: str) -> dict:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "user_id"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError(AuthError.EXPIRED)
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError):
            raise AuthError(AuthError.INVALID_SIGNATURE)
        except jwt.InvalidTokenError:
            raise AuthError(AuthError.MALFORMED)
