"""In-memory account credentials.

Maps login names to an owner id and a bcrypt hash. Accounts live for
the lifetime of the process; personal data keyed by the owner id is
what DataVault persists.
"""

import unicodedata
from dataclasses import dataclass
from threading import Lock

import bcrypt

from datavault.database.types import new_id
from datavault.settings import settings


class UsernameTakenError(Exception):
    """Raised when registering a login name that already exists."""

    pass


@dataclass(frozen=True)
class Account:
    """Registered account.

    Attributes:
        username: Login name.
        owner_id: Id owning the account's data.
        password_hash: bcrypt hash of the password.
    """

    username: str
    owner_id: str
    password_hash: str


class CredentialStore:
    """Thread-safe registry of accounts.

    Attributes:
        _accounts: Login name to account mapping.
        _rounds: bcrypt cost factor.
        _lock: Thread synchronization lock.
    """

    def __init__(self, rounds: int | None = None) -> None:
        self._accounts: dict[str, Account] = {}
        self._rounds = rounds or settings.security.bcrypt_rounds
        self._lock = Lock()

    def register(self, username: str, password: str, owner_id: str | None = None) -> Account:
        """Create an account.

        Args:
            username: Login name.
            password: Plain text password.
            owner_id: Fixed owner id, generated when omitted.

        Returns:
            New account.

        Raises:
            UsernameTakenError: If the login name exists.
        """
        password_hash = _hash_password(password, self._rounds)
        with self._lock:
            if username in self._accounts:
                raise UsernameTakenError(username)
            account = Account(username=username, owner_id=owner_id or new_id(), password_hash=password_hash)
            self._accounts[username] = account
        return account

    def remove(self, username: str) -> None:
        """Forget an account, if present."""
        with self._lock:
            self._accounts.pop(username, None)

    def verify(self, username: str, password: str) -> Account | None:
        """Check a login.

        Returns:
            The account, or None if the name or password is wrong.
        """
        with self._lock:
            account = self._accounts.get(username)
        if account is None:
            return None
        if not _verify_password(password, account.password_hash):
            return None
        return account

    def seed(self, users: dict[str, str]) -> None:
        """Register demo accounts; the login name doubles as owner id."""
        for username, password in users.items():
            if username not in self._accounts:
                self.register(username, password, owner_id=username)

    def __contains__(self, username: str) -> bool:
        with self._lock:
            return username in self._accounts


def _hash_password(password: str, rounds: int) -> str:
    normalized = unicodedata.normalize("NFKC", password).encode("utf-8")
    return bcrypt.hashpw(normalized, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def _verify_password(password: str, password_hash: str) -> bool:
    normalized = unicodedata.normalize("NFKC", password).encode("utf-8")
    try:
        return bcrypt.checkpw(normalized, password_hash.encode("utf-8"))
    except ValueError:
        return False
