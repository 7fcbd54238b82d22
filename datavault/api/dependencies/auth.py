"""Authentication dependencies for FastAPI.

Every data endpoint acts on behalf of exactly one owner: the subject
of the bearer token. Owner ids are never taken from the request body
or path.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from datavault.api.services.credentials import CredentialStore
from datavault.api.services.tokens import (
    AccessClaims,
    AccessTokenService,
    TokenRejected,
    get_token_service,
)

# =============================================================================
# SECURITY SCHEME
# =============================================================================

security_scheme = HTTPBearer(
    scheme_name="JWT",
    description="Enter JWT token obtained from /api/v1/auth/token",
    auto_error=True,
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# =============================================================================
# DEPENDENCIES
# =============================================================================


def get_credential_store(request: Request) -> CredentialStore:
    """Account store attached to the running application."""
    return request.app.state.credentials


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security_scheme)],
    tokens: Annotated[AccessTokenService, Depends(get_token_service)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> AccessClaims:
    """Validate the bearer token and its account.

    Args:
        credentials: Bearer token from Authorization header.
        tokens: Access token verifier.
        store: Account store.

    Returns:
        Verified token claims.

    Raises:
        HTTPException: 401 if the token is invalid, expired, or its
            account no longer exists.
    """
    try:
        claims = tokens.verify(credentials.credentials)
    except TokenRejected as e:
        raise _unauthorized(e.reason) from None

    if claims.username not in store:
        raise _unauthorized("Account no longer exists")
    return claims


def get_owner_id(user: Annotated[AccessClaims, Depends(get_current_user)]) -> str:
    """Owner id of the authenticated caller."""
    return user.owner_id


CurrentUser = Annotated[AccessClaims, Depends(get_current_user)]
OwnerId = Annotated[str, Depends(get_owner_id)]
