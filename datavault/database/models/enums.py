"""Closed vocabularies shared by models, services and the API."""

from enum import Enum


class DataCategory(str, Enum):
    """Category of a collected personal data item."""

    IDENTITY = "IDENTITY"
    CONTACT = "CONTACT"
    FINANCIAL = "FINANCIAL"
    USAGE = "USAGE"
    ACTIVITY = "ACTIVITY"
    SENSITIVE = "SENSITIVE"


class ConsentStatus(str, Enum):
    """Consent state. EXPIRED is derived at read time, never stored."""

    GRANTED = "GRANTED"
    WITHDRAWN = "WITHDRAWN"
    PENDING = "PENDING"
    EXPIRED = "EXPIRED"


class AuditAction(str, Enum):
    """Kinds of recorded actions."""

    DATA_VIEW = "DATA_VIEW"
    DATA_CREATE = "DATA_CREATE"
    DATA_UPDATE = "DATA_UPDATE"
    DATA_DELETE = "DATA_DELETE"
    DATA_EXPORT = "DATA_EXPORT"
    CONSENT_CREATE = "CONSENT_CREATE"
    CONSENT_GRANT = "CONSENT_GRANT"
    CONSENT_WITHDRAW = "CONSENT_WITHDRAW"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    PROFILE_UPDATE = "PROFILE_UPDATE"
    AUDIT_EXPORT = "AUDIT_EXPORT"
    PASSWORD_CREATE = "PASSWORD_CREATE"
    PASSWORD_VIEW = "PASSWORD_VIEW"
    PASSWORD_UPDATE = "PASSWORD_UPDATE"
    PASSWORD_DELETE = "PASSWORD_DELETE"
    NOTE_CREATE = "NOTE_CREATE"
    NOTE_VIEW = "NOTE_VIEW"
    NOTE_UPDATE = "NOTE_UPDATE"
    NOTE_DELETE = "NOTE_DELETE"


_ACTION_DESCRIPTIONS: dict[AuditAction, str] = {
    AuditAction.DATA_VIEW: "Viewed personal data",
    AuditAction.DATA_CREATE: "Created personal data entry",
    AuditAction.DATA_UPDATE: "Updated personal data",
    AuditAction.DATA_DELETE: "Deleted personal data",
    AuditAction.DATA_EXPORT: "Exported personal data",
    AuditAction.CONSENT_CREATE: "Recorded a consent",
    AuditAction.CONSENT_GRANT: "Granted consent",
    AuditAction.CONSENT_WITHDRAW: "Withdrew consent",
    AuditAction.LOGIN: "Logged in",
    AuditAction.LOGOUT: "Logged out",
    AuditAction.PROFILE_UPDATE: "Updated profile",
    AuditAction.AUDIT_EXPORT: "Exported audit trail",
    AuditAction.PASSWORD_CREATE: "Stored a password",
    AuditAction.PASSWORD_VIEW: "Revealed a password",
    AuditAction.PASSWORD_UPDATE: "Updated a password",
    AuditAction.PASSWORD_DELETE: "Deleted a password",
    AuditAction.NOTE_CREATE: "Created a secure note",
    AuditAction.NOTE_VIEW: "Viewed a secure note",
    AuditAction.NOTE_UPDATE: "Updated a secure note",
    AuditAction.NOTE_DELETE: "Deleted a secure note",
}


def describe_action(action: AuditAction) -> str:
    """Human-readable description of an audit action."""
    return _ACTION_DESCRIPTIONS[action]
