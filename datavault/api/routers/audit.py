"""Audit trail endpoints: paginated reads, aggregates and export."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from datavault.api.dependencies.auth import OwnerId
from datavault.api.dependencies.rate_limit import check_rate_limit
from datavault.api.dependencies.services import RequestContext, Services
from datavault.api.schemas import (
    AuditActionInfo,
    AuditEntryResponse,
    AuditListResponse,
    AuditStatsResponse,
    PaginatedMeta,
)

router = APIRouter(
    prefix="/audit",
    tags=["Audit"],
    dependencies=[Depends(check_rate_limit)],
)


@router.get("", response_model=AuditListResponse, summary="List audit entries")
def list_entries(
    owner_id: OwnerId,
    services: Services,
    page: Annotated[int, Query(ge=1, le=100000)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
    action: Annotated[str | None, Query()] = None,
    start_date: Annotated[datetime | None, Query(alias="startDate")] = None,
    end_date: Annotated[datetime | None, Query(alias="endDate")] = None,
) -> AuditListResponse:
    """Newest-first page of the caller's audit trail.

    The page size is capped server-side; ``meta.size`` reports the
    size actually applied.
    """
    result = services.audit.query(
        owner_id,
        action=action,
        start=start_date,
        end=end_date,
        page=page,
        limit=limit,
    )
    return AuditListResponse(
        data=[AuditEntryResponse.from_entry(entry) for entry in result.entries],
        meta=PaginatedMeta(
            page=result.page,
            size=result.limit,
            total=result.total,
            pages=result.total_pages,
        ),
    )


@router.get("/stats", response_model=AuditStatsResponse, summary="Audit statistics")
def audit_stats(owner_id: OwnerId, services: Services) -> AuditStatsResponse:
    """Counts per action, recent activity and total."""
    stats = services.audit.aggregate(owner_id)
    return AuditStatsResponse(
        counts_by_action=stats.counts_by_action,
        recent_count=stats.recent_count,
        total_count=stats.total_count,
    )


@router.get("/actions", response_model=list[AuditActionInfo], summary="Audit action kinds")
def list_actions(services: Services) -> list[AuditActionInfo]:
    """Every action kind with a description."""
    return [AuditActionInfo(**info) for info in services.audit.list_actions()]


@router.get("/export", summary="Export audit trail", response_class=Response)
def export_entries(
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
    fmt: Annotated[str, Query(alias="format")] = "json",
) -> Response:
    """Download the complete audit trail as JSON or CSV."""
    payload = services.audit.export(owner_id, fmt, context=context)
    return Response(
        content=payload.content,
        media_type=payload.media_type,
        headers={"Content-Disposition": f'attachment; filename="{payload.filename}"'},
    )
