from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from yoon.core.config import settings
from yoon.core.errors import YoonError
from yoon.services.identity import hash_secret, verify_secret

logger = logging.getLogger(__name__)

PIN_KEY = "user_pin"
PIN_SALT_KEY = "user_pin_salt"
EMAIL_KEY = "user_email"
PASSWORD_KEY = "user_password"
BIOMETRIC_ENABLED_KEY = "biometric_enabled"


class SecureStorage(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemorySecureStorage:
    def __init__(self) -> None:
        self.items: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set(self, key: str, value: str) -> None:
        self.items[key] = value

    def delete(self, key: str) -> None:
        self.items.pop(key, None)


@dataclass
class UnlockResult:
    success: bool
    error: Optional[str] = None
    session: Optional[object] = None


class PinCredentialStore:
    """
    Device-local PIN and biometric unlock.

    The account email and password are cached next to a hashed PIN; a
    successful unlock replays them against ``sign_in``.
    """

    def __init__(self, storage: SecureStorage, sign_in: Callable[[str, str], object]):
        self.storage = storage
        self.sign_in = sign_in

    @staticmethod
    def is_valid_pin(pin: str) -> bool:
        return isinstance(pin, str) and pin.isdigit() and len(pin) == settings.pin_length

    def save_pin(self, pin: str, email: str, password: str) -> None:
        if not self.is_valid_pin(pin):
            raise YoonError(message=f"Le PIN doit contenir {settings.pin_length} chiffres")
        hashed, salt = hash_secret(pin)
        self.storage.set(PIN_KEY, hashed)
        self.storage.set(PIN_SALT_KEY, salt)
        self.storage.set(EMAIL_KEY, email)
        self.storage.set(PASSWORD_KEY, password)

    def has_pin(self) -> bool:
        return self.storage.get(PIN_KEY) is not None

    def verify_pin(self, pin: str) -> bool:
        hashed = self.storage.get(PIN_KEY)
        salt = self.storage.get(PIN_SALT_KEY)
        if hashed is None or salt is None:
            return False
        return verify_secret(pin, hashed, salt)

    def login_with_pin(self, pin: str) -> UnlockResult:
        if not self.verify_pin(pin):
            return UnlockResult(success=False, error="PIN incorrect")
        return self._replay_credentials()

    def login_with_biometric(self, authenticate: Callable[[], bool]) -> UnlockResult:
        try:
            authenticated = authenticate()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Biometric authentication failed: %s", exc)
            authenticated = False
        if not authenticated:
            return UnlockResult(success=False, error="Authentification annulée")
        return self._replay_credentials()

    def reset_pin(self, email: str, password: str, new_pin: str) -> UnlockResult:
        try:
            session = self.sign_in(email, password)
        except YoonError as exc:
            logger.warning("PIN reset rejected: %s", exc)
            return UnlockResult(success=False, error="Email ou mot de passe incorrect")
        self.save_pin(new_pin, email, password)
        return UnlockResult(success=True, session=session)

    def set_biometric_enabled(self, enabled: bool) -> None:
        self.storage.set(BIOMETRIC_ENABLED_KEY, "true" if enabled else "false")

    def is_biometric_enabled(self) -> bool:
        return self.storage.get(BIOMETRIC_ENABLED_KEY) == "true"

    def clear(self) -> None:
        for key in (PIN_KEY, PIN_SALT_KEY, EMAIL_KEY, PASSWORD_KEY, BIOMETRIC_ENABLED_KEY):
            self.storage.delete(key)

    def _replay_credentials(self) -> UnlockResult:
        email = self.storage.get(EMAIL_KEY)
        password = self.storage.get(PASSWORD_KEY)
        if not email or not password:
            return UnlockResult(success=False, error="Credentials non trouvés")
        try:
            session = self.sign_in(email, password)
        except YoonError as exc:
            logger.error("Cached credentials rejected: %s", exc)
            return UnlockResult(success=False, error=exc.message)
        return UnlockResult(success=True, session=session)
