"""Access tokens for API callers.

An access token is a signed JWT whose subject is the caller's owner id.
Issuer and audience are pinned, so a token signed with the same secret
for another service is refused.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

from datavault.database.types import utcnow
from datavault.settings import settings
from datavault.settings.api import SecuritySettings

TOKEN_ISSUER = "datavault"
TOKEN_AUDIENCE = "datavault-api"
_REQUIRED_CLAIMS = ["sub", "username", "iat", "exp", "iss", "aud"]


@dataclass(frozen=True)
class AccessClaims:
    """Verified identity carried by a bearer token.

    Attributes:
        owner_id: Owner every request acts on behalf of.
        username: Login name the token was issued to.
        issued_at: Issue time (UTC).
        expires_at: Expiry time (UTC).
    """

    owner_id: str
    username: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IssuedToken:
    """Encoded token and its lifetime in seconds."""

    token: str
    expires_in: int


class TokenRejected(Exception):
    """Bearer token cannot authenticate a caller."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class TokenExpired(TokenRejected):
    """Bearer token was valid but its lifetime is over."""

    def __init__(self) -> None:
        super().__init__("Token has expired")


class AccessTokenService:
    """Issue and verify owner-scoped access tokens."""

    def __init__(
        self,
        security: SecuritySettings | None = None,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        security = security or settings.security
        self._secret_key = security.jwt_secret_key
        self._algorithm = security.jwt_algorithm
        self._lifetime = timedelta(minutes=security.jwt_expire_minutes)
        self._clock = clock

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def issue(self, owner_id: str, username: str) -> IssuedToken:
        """Sign a token for one account.

        Args:
            owner_id: Token subject.
            username: Login name, checked against the account store on use.

        Returns:
            The encoded token with its lifetime.
        """
        now = self._clock()
        claims = {
            "sub": owner_id,
            "username": username,
            "iss": TOKEN_ISSUER,
            "aud": TOKEN_AUDIENCE,
            "iat": now,
            "exp": now + self._lifetime,
        }
        token = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        return IssuedToken(token=token, expires_in=int(self._lifetime.total_seconds()))

    def verify(self, token: str) -> AccessClaims:
        """Check signature, expiry, issuer and audience of a token.

        Raises:
            TokenExpired: The token is past its expiry.
            TokenRejected: Any other defect.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                audience=TOKEN_AUDIENCE,
                issuer=TOKEN_ISSUER,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpired() from e
        except jwt.InvalidTokenError as e:
            raise TokenRejected("Invalid authentication token") from e

        return AccessClaims(
            owner_id=claims["sub"],
            username=claims["username"],
            issued_at=datetime.fromtimestamp(claims["iat"], tz=UTC),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=UTC),
        )


def get_token_service() -> AccessTokenService:
    """FastAPI dependency building the service from settings."""
    return AccessTokenService()
