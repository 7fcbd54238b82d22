"""Authentication endpoints.

Login and registration also drive the data lifecycle: registering
collects the account's default identity items, and every login
refreshes the activity items and is recorded in the audit trail.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from datavault.api.dependencies.auth import CurrentUser, OwnerId, get_credential_store
from datavault.api.dependencies.rate_limit import check_rate_limit
from datavault.api.dependencies.services import RequestContext, Services
from datavault.api.schemas import (
    RegisterRequest,
    RegisterResponse,
    TokenRequest,
    TokenResponse,
)
from datavault.api.services.credentials import CredentialStore, UsernameTakenError
from datavault.api.services.tokens import AccessTokenService, get_token_service
from datavault.utils.logger import setup_logger

logger = setup_logger("api.auth")

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    dependencies=[Depends(check_rate_limit)],
)

Credentials = Annotated[CredentialStore, Depends(get_credential_store)]
Tokens = Annotated[AccessTokenService, Depends(get_token_service)]


@router.post(
    "/token",
    response_model=TokenResponse,
    summary="Get access token",
    description="Authenticate and receive JWT token.",
)
def login(
    request: TokenRequest,
    services: Services,
    context: RequestContext,
    store: Credentials,
    tokens: Tokens,
) -> TokenResponse:
    """Authenticate an account, refresh its login activity, issue a token.

    Raises:
        HTTPException: 401 if credentials invalid.
    """
    account = store.verify(request.username, request.password)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    services.lifecycle.record_login(account.owner_id, context=context)
    issued = tokens.issue(account.owner_id, account.username)
    return TokenResponse(access_token=issued.token, expires_in=issued.expires_in)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="Create an account and collect its default identity data.",
)
def register(
    request: RegisterRequest,
    services: Services,
    context: RequestContext,
    store: Credentials,
) -> RegisterResponse:
    """Register an account together with its identity items.

    The account is removed again if the identity items cannot be
    stored, so a registration either fully happens or not at all.

    Raises:
        HTTPException: 409 if username already taken.
    """
    try:
        account = store.register(request.username, request.password)
    except UsernameTakenError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already taken",
        ) from None

    try:
        items = services.lifecycle.register_with_defaults(
            account.owner_id,
            {"name": request.name, "email": request.email},
            context=context,
        )
    except Exception:
        store.remove(account.username)
        raise

    logger.info(f"Registered account {account.username}")
    return RegisterResponse(
        username=account.username,
        owner_id=account.owner_id,
        items_created=len(items),
        message="User registered successfully",
    )


@router.get("/me", summary="Current account")
def me(user: CurrentUser) -> dict[str, str]:
    """Identity of the token holder."""
    return {"username": user.username, "owner_id": user.owner_id}


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Log out",
    description="Record the end of a session. Tokens stay valid until they expire.",
)
def logout(owner_id: OwnerId, services: Services, context: RequestContext) -> None:
    """Record a logout."""
    services.lifecycle.record_logout(owner_id, context=context)
