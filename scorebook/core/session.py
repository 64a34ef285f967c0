"""
Session context and the local PIN gate that creates it.

The PIN lives in the on-device key-value store. It is a privacy screen for a
single teacher on a shared machine, not a security boundary.
"""

import logging
from typing import Optional

from .exceptions import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)


class SessionContext:
    """Explicit session handed to the sync store and service layer."""

    def __init__(self, key: str):
        self._key: Optional[str] = key
        self._active = True

    @property
    def key(self) -> Optional[str]:
        """Identifying key used by the backends; None once closed."""
        return self._key if self._active else None

    @property
    def is_active(self) -> bool:
        return self._active

    def close(self) -> None:
        self._active = False
        self._key = None

    def __repr__(self) -> str:
        return f"SessionContext(active={self._active})"


class Authenticator:
    """Checks a PIN against the locally stored one, setting it on first use."""

    def __init__(self, credential_store, pin_key: str = "scorebook_pin", min_length: int = 4):
        self._store = credential_store
        self._pin_key = pin_key
        self._min_length = min_length

    @property
    def has_credential(self) -> bool:
        return bool(self._store.get(self._pin_key))

    def login(self, password: str) -> SessionContext:
        """Open a session, registering the PIN if none is stored yet."""
        if password is None or len(password) < self._min_length:
            raise ValidationError(
                f"Password must be at least {self._min_length} characters",
                error_code="PASSWORD_TOO_SHORT",
            )

        stored = self._store.get(self._pin_key)
        if not stored:
            self._store.set(self._pin_key, password)
            logger.info("Registered a new local PIN")
        elif stored != password:
            raise AuthenticationError("Incorrect password", error_code="BAD_PASSWORD")

        return SessionContext(password)

    def logout(self, session: SessionContext) -> None:
        session.close()
