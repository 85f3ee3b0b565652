from typing import Annotated

from fastapi import Depends, Request
from sqlmodel import Session

from ..core.database import get_session
from ..core.errors import SessionInvalidated, Unauthorized
from ..models.AuthSession import AuthIdentity
from ..models.SuperAdmin import SuperAdmin
from .sessions import validate_session
from .tokens import decode_access_token

BEARER_PREFIX = "Bearer "


def bearer_token(authorization: str | None) -> str:
    """
    Extracts the token from an Authorization header value.
    Raises Unauthorized when the header is missing or not a Bearer credential.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise Unauthorized("Missing or invalid authorization header")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized("Missing or invalid authorization header")
    return token


async def get_current_identity(request: Request, session: Session = Depends(get_session)) -> AuthIdentity:
    """
    Gate for privileged routes: header check, token decode, then session lookup.
    The decoded identity is attached to request.state.user.
    """
    token = bearer_token(request.headers.get("Authorization"))
    identity = decode_access_token(token)

    if not validate_session(session, token):
        raise SessionInvalidated()

    request.state.user = identity
    request.state.token = token
    return identity


async def require_super_admin(
    identity: Annotated[AuthIdentity, Depends(get_current_identity)],
    session: Session = Depends(get_session),
) -> SuperAdmin:
    admin = session.get(SuperAdmin, identity.id)
    if admin is None:
        raise Unauthorized("Could not validate credentials")
    return admin
