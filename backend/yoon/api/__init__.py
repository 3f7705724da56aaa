from typing import Optional

from fastapi import Depends, Header, HTTPException
from starlette.requests import Request

from yoon.services.booking_service import BookingService
from yoon.services.identity import IdentityProvider, SessionIdentity
from yoon.services.trip_service import TripService
from yoon.storage.repository import InMemoryRepository


def get_repository(request: Request) -> InMemoryRepository:
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise HTTPException(status_code=500, detail="Repository not initialized")
    return repository


def get_identity_provider(request: Request) -> IdentityProvider:
    provider = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        raise HTTPException(status_code=500, detail="Identity provider not initialized")
    return provider


def get_session_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_identity(
    token: Optional[str] = Depends(get_session_token),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> SessionIdentity:
    return SessionIdentity(provider.resolve(token))


def get_trip_service(
    repository: InMemoryRepository = Depends(get_repository),
    identity: SessionIdentity = Depends(get_identity),
) -> TripService:
    return TripService(trips=repository, users=repository, identity=identity)


def get_booking_service(
    request: Request,
    repository: InMemoryRepository = Depends(get_repository),
    identity: SessionIdentity = Depends(get_identity),
) -> BookingService:
    return BookingService(
        trips=repository,
        bookings=repository,
        users=repository,
        identity=identity,
        notifier=getattr(request.app.state, "notifier", None),
    )
