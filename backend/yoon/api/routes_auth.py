from typing import Optional

from fastapi import APIRouter, Depends

from yoon.api import get_identity, get_identity_provider, get_session_token
from yoon.models.schemas import (
    PushTokenRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    UserSchema,
)
from yoon.services.identity import IdentityProvider, SessionIdentity

router = APIRouter()


@router.post("/signup", response_model=SessionResponse, status_code=201)
def sign_up(
    payload: SignUpRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
) -> SessionResponse:
    user = provider.sign_up(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        password=payload.password,
    )
    token = provider.sign_in(payload.email, payload.password)
    return SessionResponse(token=token, user=UserSchema.from_domain(user))


@router.post("/signin", response_model=SessionResponse)
def sign_in(
    payload: SignInRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
) -> SessionResponse:
    token = provider.sign_in(payload.email, payload.password)
    user = provider.resolve(token)
    return SessionResponse(token=token, user=UserSchema.from_domain(user))


@router.post("/signout", status_code=204)
def sign_out(
    token: Optional[str] = Depends(get_session_token),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> None:
    if token:
        provider.sign_out(token)


@router.get("/me", response_model=UserSchema)
def me(identity: SessionIdentity = Depends(get_identity)) -> UserSchema:
    return UserSchema.from_domain(identity.require_user())


@router.put("/me/push-token", response_model=UserSchema)
def register_push_token(
    payload: PushTokenRequest,
    identity: SessionIdentity = Depends(get_identity),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> UserSchema:
    user = identity.require_user()
    return UserSchema.from_domain(provider.register_push_token(user.user_id, payload.push_token))
