"""
Panel authentication

bcrypt password hashing and JWT bearer tokens bound to one panel. The
Authenticate dependency is the default auth middleware of a panel: it
rejects requests without a valid token for that panel and stores the
user on ``request.state.user``.
"""
import bcrypt
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from panelkit.config import settings
from panelkit.database import get_db
from panelkit.schemas import LoginRequest, TokenResponse

if TYPE_CHECKING:
    from panelkit.panel import Panel

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def get_password_hash(password: str) -> str:
    """Hash a password"""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def create_access_token(subject: Any, panel_id: str, expires_minutes: Optional[int] = None) -> str:
    """JWT for ``subject`` valid on panel ``panel_id`` only"""
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode = {
        "sub": str(subject),
        "panel": panel_id,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise _unauthorized("Invalid authentication credentials") from None


class Authenticate:
    """
    Auth middleware: resolve the bearer token to a user of the panel

    Registered as a class in Panel.auth_middleware(); the panel instantiates
    it with itself.
    """

    def __init__(self, panel: "Panel"):
        self.panel = panel

    def __call__(
        self,
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
        db: Session = Depends(get_db),
    ) -> Any:
        if credentials is None:
            raise _unauthorized("Not authenticated")

        payload = decode_token(credentials.credentials)
        if payload.get("panel") != self.panel.get_id():
            logger.debug(f"Token for panel '{payload.get('panel')}' rejected by panel '{self.panel.get_id()}'")
            raise _unauthorized("Token is not valid for this panel")

        user = self.panel.load_user(db, payload.get("sub"))
        if user is None:
            raise _unauthorized("User not found")

        if getattr(user, "is_active", True) is False:
            raise _unauthorized("Account is disabled")

        request.state.user = user
        return user


def login_endpoint(panel: "Panel") -> Callable:
    """POST handler exchanging credentials for a panel token"""

    def login(data: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
        user = panel.authenticate_user(db, data.username, data.password)
        if user is None:
            logger.info(f"Failed login for '{data.username}' on panel '{panel.get_id()}'")
            raise _unauthorized("Incorrect username or password")

        return TokenResponse(access_token=create_access_token(panel.get_user_identifier(user), panel.get_id()))

    return login


__all__ = [
    "bearer",
    "get_password_hash",
    "verify_password",
    "create_access_token",
    "decode_token",
    "Authenticate",
    "login_endpoint",
]
