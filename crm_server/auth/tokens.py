import uuid
from datetime import datetime, timedelta

from jose import JWTError, jwt

from ..core.clock import utcnow
from ..core.errors import Unauthorized
from ..core.settings import settings
from ..models.AuthSession import AuthIdentity


def create_access_token(identity: AuthIdentity, expires_delta: timedelta | None = None) -> tuple[str, datetime]:
    """
    Signs an identity token for the given user.
    Returns the encoded JWT and its expiry (naive UTC).
    """
    issued_at = utcnow()
    expire = issued_at + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "id": identity.id,
        "username": identity.username,
        # Unique per login so two logins never hash to the same session
        "jti": uuid.uuid4().hex,
        "iat": issued_at,
        "exp": expire,
    }
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)
    return encoded_jwt, expire


def decode_access_token(token: str) -> AuthIdentity:
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": settings.ENFORCE_TOKEN_EXPIRY},
        )
    except JWTError:
        raise Unauthorized()

    user_id = payload.get("id")
    username = payload.get("username")
    if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(username, str):
        raise Unauthorized()

    return AuthIdentity(id=user_id, username=username)
