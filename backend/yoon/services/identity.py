from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple
from uuid import uuid4

from yoon.core.config import settings
from yoon.core.errors import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidProfileError,
    NotAuthenticatedError,
    WeakPasswordError,
)
from yoon.models.domain import UserProfile
from yoon.storage.repository import UserRepository

logger = logging.getLogger(__name__)


def hash_secret(secret: str, salt: Optional[str] = None) -> Tuple[str, str]:
    salt = salt or secrets.token_hex(16)
    hashed = hashlib.sha256((salt + secret).encode()).hexdigest()
    return hashed, salt


def verify_secret(secret: str, hashed: str, salt: str) -> bool:
    candidate, _ = hash_secret(secret, salt)
    return secrets.compare_digest(candidate, hashed)


class IdentityProvider:
    """
    Email/password accounts with opaque session tokens.

    Profiles live in the ``users`` collection; credentials and sessions are
    kept by the provider itself and never exposed through profile reads.
    A session lasts ``session_ttl_seconds`` after sign-in; expired tokens
    resolve to nobody and are dropped on the next sign-in.
    """

    def __init__(self, users: UserRepository, clock: Optional[Callable[[], datetime]] = None):
        self.users = users
        self._credentials: Dict[str, Tuple[str, str, str]] = {}
        self._sessions: Dict[str, Tuple[str, datetime]] = {}
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def sign_up(self, name: str, email: str, phone: str, password: str) -> UserProfile:
        name, email, phone = (name or "").strip(), (email or "").strip(), (phone or "").strip()
        if not (name and email and phone and password):
            raise InvalidProfileError()
        if len(password) < settings.min_password_length:
            raise WeakPasswordError(
                message=f"Le mot de passe doit contenir au moins "
                f"{settings.min_password_length} caractères"
            )
        key = email.lower()
        if key in self._credentials or self.users.find_user_by_email(email):
            raise EmailAlreadyRegisteredError()

        user = UserProfile(
            user_id=str(uuid4()),
            name=name,
            email=email,
            phone=phone,
            rating=0.0,
            trips_count=0,
            verified=False,
            created_at=datetime.now(timezone.utc),
        )
        self.users.save_user(user)
        hashed, salt = hash_secret(password)
        self._credentials[key] = (user.user_id, hashed, salt)
        logger.info("Registered user %s", user.user_id)
        return user

    def sign_in(self, email: str, password: str) -> str:
        if not email or not password:
            raise InvalidProfileError()
        record = self._credentials.get(email.strip().lower())
        if record is None or not verify_secret(password, record[1], record[2]):
            raise InvalidCredentialsError()
        now = self._clock()
        self._drop_expired(now)
        token = secrets.token_urlsafe(32)
        self._sessions[token] = (record[0], now + timedelta(seconds=settings.session_ttl_seconds))
        logger.info("User %s signed in", record[0])
        return token

    def sign_out(self, token: str) -> None:
        session = self._sessions.pop(token, None)
        if session:
            logger.info("User %s signed out", session[0])

    def resolve(self, token: Optional[str]) -> Optional[UserProfile]:
        if not token:
            return None
        session = self._sessions.get(token)
        if session is None:
            return None
        user_id, expires_at = session
        if expires_at <= self._clock():
            self._sessions.pop(token, None)
            logger.info("Session of user %s expired", user_id)
            return None
        return self.users.get_user(user_id)

    def register_push_token(self, user_id: str, push_token: str) -> UserProfile:
        user = self.users.update_user(
            user_id,
            push_token=push_token,
            last_token_update=datetime.now(timezone.utc),
        )
        logger.info("Saved push token for user %s", user_id)
        return user

    def _drop_expired(self, now: datetime) -> None:
        expired = [t for t, (_, expires_at) in list(self._sessions.items()) if expires_at <= now]
        for token in expired:
            self._sessions.pop(token, None)


class SessionIdentity:
    """The signed-in user of one request, as seen by the services."""

    def __init__(self, user: Optional[UserProfile]):
        self._user = user

    def current_user(self) -> Optional[UserProfile]:
        return self._user

    def require_user(self) -> UserProfile:
        if self._user is None:
            raise NotAuthenticatedError()
        return self._user
