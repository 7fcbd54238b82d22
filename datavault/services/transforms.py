"""Reversible transforms applied to stored secrets.

The contract is reversibility plus integrity-failure signalling. The
bundled ``Base64Transform`` is an encoding, not encryption; deployments
that need confidentiality plug in an authenticated cipher with the same
two methods.
"""

import base64
import binascii
from typing import Protocol

from datavault.errors import TransformIntegrityError


class ReversibleTransform(Protocol):
    """Two-way transform between a plaintext secret and its stored form."""

    def encode(self, plaintext: str) -> str:
        """Transform a plaintext secret for storage."""
        ...

    def decode(self, stored: str) -> str:
        """Recover the plaintext.

        Raises:
            TransformIntegrityError: If ``stored`` was not produced by encode.
        """
        ...


class Base64Transform:
    """Strict base64 over UTF-8."""

    def encode(self, plaintext: str) -> str:
        return base64.b64encode(plaintext.encode("utf-8")).decode("ascii")

    def decode(self, stored: str) -> str:
        try:
            return base64.b64decode(stored, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise TransformIntegrityError() from e
