from datetime import timedelta
import http
import logging
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session
from ..core.database import get_session
from ..core.errors import Unauthorized
from ..core.settings import settings
from ..models.AuthSession import AuthIdentity
from ..models.SuperAdmin import LoginRequest, LoginResponse, Profile, SuperAdmin
from ..activity.service import log_event
from .dependencies import get_current_identity
from .service import authenticate_admin, to_profile
from .sessions import create_session, invalidate_session
from .tokens import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/login", response_model=LoginResponse)
async def login(login_data: LoginRequest, request: Request, session: Session = Depends(get_session)):
    """
    Login with username and password to get an access token.
    Any previous session of the same admin is invalidated.
    """
    admin = authenticate_admin(session, login_data.username, login_data.password)

    if not admin:
        action = f"POST /login {status.HTTP_401_UNAUTHORIZED} {http.HTTPStatus(status.HTTP_401_UNAUTHORIZED).phrase}"
        log_event(session, 0, action, f"Invalid credentials for '{login_data.username}'")
        raise Unauthorized("Invalid credentials")

    token, expires_at = create_access_token(
        AuthIdentity(id=admin.id, username=admin.username),
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    create_session(
        session,
        user_id=admin.id,
        user_type="super_admin",
        token=token,
        expires_at=expires_at,
        ip_address=request.headers.get("x-forwarded-for") or (request.client.host if request.client else None),
        user_agent=request.headers.get("user-agent"),
    )

    action = f"POST /login {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, admin.id, action, "Login successful")
    logger.info("Super admin '%s' logged in", admin.username)
    return LoginResponse(token=token, profile=to_profile(admin))


@router.get("/me", response_model=Profile)
async def get_me(
    identity: Annotated[AuthIdentity, Depends(get_current_identity)],
    session: Session = Depends(get_session),
):
    admin = session.get(SuperAdmin, identity.id)
    if admin is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return to_profile(admin)


@router.post("/logout")
async def logout(
    request: Request,
    identity: Annotated[AuthIdentity, Depends(get_current_identity)],
    session: Session = Depends(get_session),
):
    """
    Invalidate the session bound to the presented token.
    """
    invalidate_session(session, request.state.token)
    action = f"POST /logout {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, identity.id, action, "Logged out successfully")
    return {"message": "Logged out successfully"}


@router.get("/session-valid")
async def session_valid(identity: Annotated[AuthIdentity, Depends(get_current_identity)]):
    # Reaching this point means the token decoded and its session is still active
    return {"valid": True}
