"""Request authentication.

``/decrypt`` is service-to-service and takes the shared internal API key;
dashboard routes take a bearer JWT issued by the identity provider.
"""

from jose import jwt, JWTError
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .config import INTERNAL_API_KEY, JWT_SECRET, JWT_ALGORITHM

security = HTTPBearer()


class CurrentUser:
    """Lightweight user object extracted from JWT payload."""

    def __init__(self, id: str, username: str | None):
        self.id = id
        self.username = username


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    token = credentials.credentials
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        user_id = payload.get("sub")
        username = payload.get("username")
    except (JWTError, ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        )
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        )
    return CurrentUser(id=str(user_id), username=username)


def verify_internal_key(x_internal_api_key: str = Header(...)):
    if x_internal_api_key != INTERNAL_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid internal API key",
        )
