"""Vault endpoints: secure notes and password entries."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from datavault.api.dependencies.auth import OwnerId
from datavault.api.dependencies.rate_limit import check_rate_limit
from datavault.api.dependencies.services import RequestContext, Services
from datavault.api.schemas import (
    NoteDetailResponse,
    NoteResponse,
    NoteStatsResponse,
    PasswordResponse,
    PasswordRevealResponse,
    PasswordStatsResponse,
)
from datavault.services.schemas import (
    NoteCreate,
    NoteUpdate,
    PasswordCreate,
    PasswordUpdate,
)

router = APIRouter(
    prefix="/vault",
    tags=["Vault"],
    dependencies=[Depends(check_rate_limit)],
)

CategoryFilter = Annotated[str | None, Query(max_length=100)]


# =============================================================================
# SECURE NOTES
# =============================================================================


@router.post(
    "/notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create note",
)
def create_note(
    body: NoteCreate,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> NoteResponse:
    note = services.vault.create_note(owner_id, body, context=context)
    return NoteResponse.model_validate(note)


@router.get("/notes", response_model=list[NoteResponse], summary="List notes")
def list_notes(owner_id: OwnerId, services: Services, category: CategoryFilter = None) -> list[NoteResponse]:
    """Active notes, pinned first. Content is not included."""
    return [NoteResponse.model_validate(note) for note in services.vault.list_notes(owner_id, category)]


@router.get("/notes/stats/summary", response_model=NoteStatsResponse, summary="Note statistics")
def note_stats(owner_id: OwnerId, services: Services) -> NoteStatsResponse:
    stats = services.vault.note_stats(owner_id)
    return NoteStatsResponse(
        total_notes=stats.total_notes,
        pinned_notes=stats.pinned_notes,
        by_category=stats.by_category,
    )


@router.get("/notes/categories/list", response_model=list[str], summary="Note categories")
def list_note_categories(owner_id: OwnerId, services: Services) -> list[str]:
    return services.vault.list_note_categories(owner_id)


@router.get("/notes/{note_id}", response_model=NoteDetailResponse, summary="Read note")
def get_note(
    note_id: str,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> NoteDetailResponse:
    """Note with its content; the read is audited."""
    revealed = services.vault.get_note(owner_id, note_id, context=context)
    return NoteDetailResponse(
        **NoteResponse.model_validate(revealed.note).model_dump(),
        content=revealed.content,
    )


@router.put("/notes/{note_id}", response_model=NoteResponse, summary="Update note")
def update_note(
    note_id: str,
    body: NoteUpdate,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> NoteResponse:
    note = services.vault.update_note(owner_id, note_id, body, context=context)
    return NoteResponse.model_validate(note)


@router.patch("/notes/{note_id}/pin", response_model=NoteResponse, summary="Toggle note pin")
def toggle_pin(
    note_id: str,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> NoteResponse:
    note = services.vault.toggle_pin(owner_id, note_id, context=context)
    return NoteResponse.model_validate(note)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete note")
def delete_note(
    note_id: str,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> None:
    services.vault.delete_note(owner_id, note_id, context=context)


# =============================================================================
# PASSWORDS
# =============================================================================


@router.post(
    "/passwords",
    response_model=PasswordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Store password",
)
def create_password(
    body: PasswordCreate,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> PasswordResponse:
    entry = services.vault.create_password(owner_id, body, context=context)
    return PasswordResponse.model_validate(entry)


@router.get("/passwords", response_model=list[PasswordResponse], summary="List passwords")
def list_passwords(
    owner_id: OwnerId,
    services: Services,
    category: CategoryFilter = None,
) -> list[PasswordResponse]:
    """Active entries by website name. Passwords are not included."""
    return [PasswordResponse.model_validate(e) for e in services.vault.list_passwords(owner_id, category)]


@router.get("/passwords/stats/summary", response_model=PasswordStatsResponse, summary="Password statistics")
def password_stats(owner_id: OwnerId, services: Services) -> PasswordStatsResponse:
    """Totals per category and entries revealed within the last day."""
    stats = services.vault.password_stats(owner_id)
    return PasswordStatsResponse(
        total_passwords=stats.total_passwords,
        by_category=stats.by_category,
        recently_used=stats.recently_used,
    )


@router.get("/passwords/categories/list", response_model=list[str], summary="Password categories")
def list_password_categories(owner_id: OwnerId, services: Services) -> list[str]:
    return services.vault.list_password_categories(owner_id)


@router.get(
    "/passwords/{entry_id}/reveal",
    response_model=PasswordRevealResponse,
    summary="Reveal password",
)
def reveal_password(
    entry_id: str,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> PasswordRevealResponse:
    """Recovered password; the reveal is audited."""
    revealed = services.vault.reveal_password(owner_id, entry_id, context=context)
    return PasswordRevealResponse(id=revealed.entry.id, password=revealed.password)


@router.put("/passwords/{entry_id}", response_model=PasswordResponse, summary="Update password")
def update_password(
    entry_id: str,
    body: PasswordUpdate,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> PasswordResponse:
    entry = services.vault.update_password(owner_id, entry_id, body, context=context)
    return PasswordResponse.model_validate(entry)


@router.delete("/passwords/{entry_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete password")
def delete_password(
    entry_id: str,
    owner_id: OwnerId,
    services: Services,
    context: RequestContext,
) -> None:
    services.vault.delete_password(owner_id, entry_id, context=context)
