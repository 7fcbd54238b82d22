"""Personal data endpoints: collection, listing, export and erasure."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from datavault.api.dependencies.auth import OwnerId
from datavault.api.dependencies.rate_limit import check_rate_limit
from datavault.api.dependencies.services import RequestContext, Services
from datavault.api.schemas import (
    DataStatsResponse,
    EraseResponse,
    PersonalDataListResponse,
    PersonalDataResponse,
)
from datavault.services.schemas import PersonalDataCreate, PersonalDataUpdate

router = APIRouter(
    prefix="/data",
    tags=["Personal Data"],
    dependencies=[Depends(check_rate_limit)],
)


@router.get("", response_model=PersonalDataListResponse, summary="List personal data")
def list_data(
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
    category: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=200)] = None,
    include_inactive: Annotated[bool, Query()] = False,
) -> PersonalDataListResponse:
    """List the caller's items, optionally filtered by category or text."""
    items = services.registry.list_items(
        owner_id,
        category=category,
        search=search,
        include_inactive=include_inactive,
        context=context,
    )
    now = services.clock()
    return PersonalDataListResponse(
        data=[PersonalDataResponse.from_item(item, now) for item in items],
        count=len(items),
    )


@router.get("/stats", response_model=DataStatsResponse, summary="Personal data statistics")
def data_stats(owner_id: OwnerId, services: Services) -> DataStatsResponse:
    """Active item counts, granted consents and recent activity."""
    stats = services.registry.get_stats(owner_id)
    return DataStatsResponse(
        total_data=stats.total_data,
        by_category=stats.by_category,
        active_consents=stats.active_consents,
        recent_activity=stats.recent_activity,
    )


@router.get(
    "/export/all",
    summary="Export personal data",
    description="Download every item, erased ones included, as JSON or CSV.",
    response_class=Response,
)
def export_data(
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
    fmt: Annotated[str, Query(alias="format")] = "json",
) -> Response:
    """Portability export."""
    payload = services.lifecycle.export_all(owner_id, fmt, context=context)
    return Response(
        content=payload.content,
        media_type=payload.media_type,
        headers={"Content-Disposition": f'attachment; filename="{payload.filename}"'},
    )


@router.delete(
    "/delete-all/confirm",
    response_model=EraseResponse,
    summary="Erase all personal data",
    description="Soft-delete every active item and withdraw the consents that reference them.",
)
def erase_all(owner_id: OwnerId, services: Services, context: RequestContext) -> EraseResponse:
    """Right to erasure over the whole account."""
    result = services.lifecycle.erase_all(owner_id, context=context)
    return EraseResponse(
        erased_count=result.erased_count,
        withdrawn_consents=result.withdrawn_consents,
        message=f"{result.erased_count} data items deleted",
    )


@router.post(
    "",
    response_model=PersonalDataResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Collect personal data",
)
def create_data(
    body: PersonalDataCreate,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> PersonalDataResponse:
    """Store an item with an automatically granted consent."""
    item = services.registry.create(owner_id, body, context=context)
    return PersonalDataResponse.from_item(item, services.clock())


@router.get("/{item_id}", response_model=PersonalDataResponse, summary="Get personal data item")
def get_data(item_id: str, owner_id: OwnerId, services: Services) -> PersonalDataResponse:
    """One item with its consents."""
    item = services.registry.get(owner_id, item_id)
    return PersonalDataResponse.from_item(item, services.clock())


@router.put("/{item_id}", response_model=PersonalDataResponse, summary="Update personal data item")
def update_data(
    item_id: str,
    body: PersonalDataUpdate,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> PersonalDataResponse:
    """Change the value, purpose or source of an active item."""
    item = services.registry.update(owner_id, item_id, body, context=context)
    return PersonalDataResponse.from_item(item, services.clock())


@router.delete("/{item_id}", response_model=PersonalDataResponse, summary="Delete personal data item")
def delete_data(
    item_id: str,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> PersonalDataResponse:
    """Erase one item and withdraw its consents."""
    item = services.registry.soft_delete(owner_id, item_id, context=context)
    return PersonalDataResponse.from_item(item, services.clock())
