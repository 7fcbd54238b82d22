"""VaultService: secure notes and password entries.

Vault items share the soft-delete semantics of personal data: a deleted
item is flagged inactive and from then on behaves as missing. Secrets
are stored only through the configured reversible transform.
"""

from datetime import timedelta
from typing import Any

from datavault.database import (
    AuditAction,
    Database,
    PasswordEntry,
    PasswordEntryRepository,
    SecureNote,
    SecureNoteRepository,
)
from datavault.database.types import utcnow
from datavault.errors import NotFound
from datavault.services.audit_trail import AuditTrail
from datavault.services.schemas import (
    AuditContext,
    NoteCreate,
    NoteStats,
    NoteUpdate,
    PasswordCreate,
    PasswordStats,
    PasswordUpdate,
    RevealedNote,
    RevealedPassword,
    validate_input,
)
from datavault.services.transforms import Base64Transform, ReversibleTransform
from datavault.utils.logger import setup_logger

logger = setup_logger("services.vault")

_NOTE = "SecureNote"
_PASSWORD = "PasswordEntry"
RECENT_USE_WINDOW = timedelta(days=1)


class VaultService:
    """CRUD over vault items with audited secret reveals.

    Attributes:
        _database: Store handle.
        _audit: Audit trail.
        _transform: Reversible transform applied to secrets.
        _clock: Source of the current time.
    """

    def __init__(
        self,
        database: Database,
        audit_trail: AuditTrail,
        transform: ReversibleTransform | None = None,
        *,
        clock=utcnow,
    ) -> None:
        self._database = database
        self._audit = audit_trail
        self._transform = transform or Base64Transform()
        self._clock = clock

    # =========================================================================
    # SECURE NOTES
    # =========================================================================

    def create_note(
        self,
        owner_id: str,
        data: NoteCreate | dict[str, Any],
        *,
        context: AuditContext | None = None,
    ) -> SecureNote:
        """Store a new note with its body transformed.

        Raises:
            ValidationFailed: Missing title or content.
        """
        payload = validate_input(NoteCreate, data)
        with self._database.session() as session:
            note = SecureNote(
                owner_id=owner_id,
                title=payload.title,
                encrypted_content=self._transform.encode(payload.content),
                category=payload.category,
                is_pinned=payload.is_pinned,
                is_active=True,
            )
            SecureNoteRepository(session).create(note)
            self._audit.record(
                owner_id,
                AuditAction.NOTE_CREATE,
                _NOTE,
                note.id,
                details={"title": note.title},
                context=context,
                session=session,
            )
        return note

    def list_notes(self, owner_id: str, category: str | None = None) -> list[SecureNote]:
        """List active notes without revealing their content."""
        with self._database.session() as session:
            return SecureNoteRepository(session).list_for_owner(owner_id, category)

    def get_note(
        self,
        owner_id: str,
        note_id: str,
        *,
        context: AuditContext | None = None,
    ) -> RevealedNote:
        """Reveal a note's content and record the view.

        Raises:
            NotFound: Missing, foreign or deleted note.
            TransformIntegrityError: Stored content is corrupt.
        """
        with self._database.session() as session:
            note = self._get_note(SecureNoteRepository(session), owner_id, note_id)
            content = self._transform.decode(note.encrypted_content)
            self._audit.record(
                owner_id,
                AuditAction.NOTE_VIEW,
                _NOTE,
                note.id,
                details={"title": note.title},
                context=context,
                session=session,
            )
        return RevealedNote(note=note, content=content)

    def update_note(
        self,
        owner_id: str,
        note_id: str,
        data: NoteUpdate | dict[str, Any],
        *,
        context: AuditContext | None = None,
    ) -> SecureNote:
        """Change the fields of an active note.

        Raises:
            NotFound: Missing, foreign or deleted note.
        """
        payload = validate_input(NoteUpdate, data)
        changes = payload.model_dump(exclude_unset=True)
        with self._database.session() as session:
            repo = SecureNoteRepository(session)
            note = self._get_note(repo, owner_id, note_id, lock=True)
            if "content" in changes:
                note.encrypted_content = self._transform.encode(changes.pop("content"))
            for field_name, value in changes.items():
                setattr(note, field_name, value)
            repo.update(note)
            self._audit.record(
                owner_id,
                AuditAction.NOTE_UPDATE,
                _NOTE,
                note.id,
                details={"title": note.title},
                context=context,
                session=session,
            )
        return note

    def toggle_pin(
        self,
        owner_id: str,
        note_id: str,
        *,
        context: AuditContext | None = None,
    ) -> SecureNote:
        """Flip the pinned flag of an active note."""
        with self._database.session() as session:
            repo = SecureNoteRepository(session)
            note = self._get_note(repo, owner_id, note_id, lock=True)
            note.is_pinned = not note.is_pinned
            repo.update(note)
            self._audit.record(
                owner_id,
                AuditAction.NOTE_UPDATE,
                _NOTE,
                note.id,
                details={"title": note.title, "isPinned": note.is_pinned},
                context=context,
                session=session,
            )
        return note

    def delete_note(
        self,
        owner_id: str,
        note_id: str,
        *,
        context: AuditContext | None = None,
    ) -> None:
        """Soft-delete a note.

        Raises:
            NotFound: Missing, foreign or already deleted note.
        """
        with self._database.session() as session:
            repo = SecureNoteRepository(session)
            note = self._get_note(repo, owner_id, note_id, lock=True)
            repo.soft_delete(note)
            self._audit.record(
                owner_id,
                AuditAction.NOTE_DELETE,
                _NOTE,
                note.id,
                details={"title": note.title},
                context=context,
                session=session,
            )
        logger.info(f"Deleted note {note_id} for owner {owner_id}")

    def note_stats(self, owner_id: str) -> NoteStats:
        """Totals, pinned count and per-category counts of active notes."""
        with self._database.session() as session:
            repo = SecureNoteRepository(session)
            return NoteStats(
                total_notes=repo.count_active(owner_id),
                pinned_notes=repo.count_pinned(owner_id),
                by_category=repo.count_by_category(owner_id),
            )

    def list_note_categories(self, owner_id: str) -> list[str]:
        """Distinct categories in use by active notes."""
        with self._database.session() as session:
            return SecureNoteRepository(session).list_categories(owner_id)

    # =========================================================================
    # PASSWORDS
    # =========================================================================

    def create_password(
        self,
        owner_id: str,
        data: PasswordCreate | dict[str, Any],
        *,
        context: AuditContext | None = None,
    ) -> PasswordEntry:
        """Store a new credential with its password transformed."""
        payload = validate_input(PasswordCreate, data)
        with self._database.session() as session:
            entry = PasswordEntry(
                owner_id=owner_id,
                website_name=payload.website_name,
                website_url=payload.website_url,
                username=payload.username,
                encrypted_password=self._transform.encode(payload.password),
                notes=payload.notes,
                category=payload.category,
                is_active=True,
            )
            PasswordEntryRepository(session).create(entry)
            self._audit.record(
                owner_id,
                AuditAction.PASSWORD_CREATE,
                _PASSWORD,
                entry.id,
                details={"websiteName": entry.website_name},
                context=context,
                session=session,
            )
        return entry

    def list_passwords(self, owner_id: str, category: str | None = None) -> list[PasswordEntry]:
        """List active credentials without revealing passwords."""
        with self._database.session() as session:
            return PasswordEntryRepository(session).list_for_owner(owner_id, category)

    def reveal_password(
        self,
        owner_id: str,
        entry_id: str,
        *,
        context: AuditContext | None = None,
    ) -> RevealedPassword:
        """Recover a stored password, stamp its last use and record the reveal.

        Raises:
            NotFound: Missing, foreign or deleted entry.
            TransformIntegrityError: Stored password is corrupt.
        """
        with self._database.session() as session:
            repo = PasswordEntryRepository(session)
            entry = self._get_password(repo, owner_id, entry_id, lock=True)
            password = self._transform.decode(entry.encrypted_password)
            entry.last_used = self._clock()
            repo.update(entry)
            self._audit.record(
                owner_id,
                AuditAction.PASSWORD_VIEW,
                _PASSWORD,
                entry.id,
                details={"websiteName": entry.website_name},
                context=context,
                session=session,
            )
        return RevealedPassword(entry=entry, password=password)

    def update_password(
        self,
        owner_id: str,
        entry_id: str,
        data: PasswordUpdate | dict[str, Any],
        *,
        context: AuditContext | None = None,
    ) -> PasswordEntry:
        """Change the fields of an active credential."""
        payload = validate_input(PasswordUpdate, data)
        changes = payload.model_dump(exclude_unset=True)
        with self._database.session() as session:
            repo = PasswordEntryRepository(session)
            entry = self._get_password(repo, owner_id, entry_id, lock=True)
            if "password" in changes:
                entry.encrypted_password = self._transform.encode(changes.pop("password"))
            for field_name, value in changes.items():
                setattr(entry, field_name, value)
            repo.update(entry)
            self._audit.record(
                owner_id,
                AuditAction.PASSWORD_UPDATE,
                _PASSWORD,
                entry.id,
                details={"websiteName": entry.website_name},
                context=context,
                session=session,
            )
        return entry

    def delete_password(
        self,
        owner_id: str,
        entry_id: str,
        *,
        context: AuditContext | None = None,
    ) -> None:
        """Soft-delete a credential."""
        with self._database.session() as session:
            repo = PasswordEntryRepository(session)
            entry = self._get_password(repo, owner_id, entry_id, lock=True)
            repo.soft_delete(entry)
            self._audit.record(
                owner_id,
                AuditAction.PASSWORD_DELETE,
                _PASSWORD,
                entry.id,
                details={"websiteName": entry.website_name},
                context=context,
                session=session,
            )
        logger.info(f"Deleted password entry {entry_id} for owner {owner_id}")

    def password_stats(self, owner_id: str) -> PasswordStats:
        """Totals, per-category counts and recent reveals of active entries.

        An entry counts as recently used when its password was revealed
        within ``RECENT_USE_WINDOW`` of now.
        """
        since = self._clock() - RECENT_USE_WINDOW
        with self._database.session() as session:
            repo = PasswordEntryRepository(session)
            return PasswordStats(
                total_passwords=repo.count_active(owner_id),
                recently_used=repo.count_used_since(owner_id, since),
                by_category=repo.count_by_category(owner_id),
            )

    def list_password_categories(self, owner_id: str) -> list[str]:
        """Distinct categories in use by active credentials."""
        with self._database.session() as session:
            return PasswordEntryRepository(session).list_categories(owner_id)

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    @staticmethod
    def _get_note(
        repo: SecureNoteRepository,
        owner_id: str,
        note_id: str,
        lock: bool = False,
    ) -> SecureNote:
        note = repo.get_owned(owner_id, note_id, active_only=True, lock=lock)
        if note is None:
            raise NotFound("Note")
        return note

    @staticmethod
    def _get_password(
        repo: PasswordEntryRepository,
        owner_id: str,
        entry_id: str,
        lock: bool = False,
    ) -> PasswordEntry:
        entry = repo.get_owned(owner_id, entry_id, active_only=True, lock=lock)
        if entry is None:
            raise NotFound("Password")
        return entry
