"""Consent endpoints: listing, transitions and bulk withdrawal."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from datavault.api.dependencies.auth import OwnerId
from datavault.api.dependencies.rate_limit import check_rate_limit
from datavault.api.dependencies.services import RequestContext, Services
from datavault.api.schemas import (
    BulkWithdrawalResponse,
    ConsentListResponse,
    ConsentResponse,
    GrantRequest,
)
from datavault.services.schemas import ConsentCreate

router = APIRouter(
    prefix="/consents",
    tags=["Consents"],
    dependencies=[Depends(check_rate_limit)],
)


@router.get("", response_model=ConsentListResponse, summary="List consents")
def list_consents(
    owner_id: OwnerId,
    services: Services,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> ConsentListResponse:
    """The caller's consents, optionally filtered by observed status."""
    consents = services.consents.list_consents(owner_id, status_filter)
    now = services.clock()
    return ConsentListResponse(
        data=[ConsentResponse.from_record(consent, now) for consent in consents],
        count=len(consents),
    )


@router.get("/stats", summary="Consent statistics")
def consent_stats(owner_id: OwnerId, services: Services) -> dict[str, int]:
    """Counts per observed status."""
    return services.consents.get_stats(owner_id)


@router.post(
    "/withdraw-all/confirm",
    response_model=BulkWithdrawalResponse,
    summary="Withdraw all consents",
)
def withdraw_all(owner_id: OwnerId, services: Services, context: RequestContext) -> BulkWithdrawalResponse:
    """Withdraw every granted consent in one step."""
    result = services.lifecycle.withdraw_all(owner_id, context=context)
    return BulkWithdrawalResponse(count=result.count, message=f"{result.count} consents withdrawn")


@router.post(
    "",
    response_model=ConsentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a consent",
)
def create_consent(
    body: ConsentCreate,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> ConsentResponse:
    """Record a consent with an explicit initial status."""
    consent = services.consents.create(owner_id, body, context=context)
    return ConsentResponse.from_record(consent, services.clock())


@router.get("/{consent_id}", response_model=ConsentResponse, summary="Get consent")
def get_consent(consent_id: str, owner_id: OwnerId, services: Services) -> ConsentResponse:
    """One consent."""
    consent = services.consents.get(owner_id, consent_id)
    return ConsentResponse.from_record(consent, services.clock())


@router.post("/{consent_id}/grant", response_model=ConsentResponse, summary="Grant consent")
def grant_consent(
    consent_id: str,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
    body: GrantRequest | None = None,
) -> ConsentResponse:
    """Move a consent to GRANTED."""
    consent = services.consents.grant(
        owner_id,
        consent_id,
        expires_at=body.expires_at if body else None,
        context=context,
    )
    return ConsentResponse.from_record(consent, services.clock())


@router.post("/{consent_id}/withdraw", response_model=ConsentResponse, summary="Withdraw consent")
def withdraw_consent(
    consent_id: str,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> ConsentResponse:
    """Move a consent to WITHDRAWN."""
    consent = services.consents.withdraw(owner_id, consent_id, context=context)
    return ConsentResponse.from_record(consent, services.clock())
