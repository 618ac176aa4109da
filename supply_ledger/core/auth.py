"""
Access gate for the API.

The business runs on one shared application password (APP_PASSWORD). A
successful login yields a short-lived JWT; every business route depends on
get_current_session to validate it. An unset password disables login.
"""
import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from supply_ledger.core.config import settings
from supply_ledger.core.logging import get_logger

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)

SESSION_SUBJECT = "operator"


def verify_app_password(password: str) -> bool:
    """Compare against APP_PASSWORD without leaking timing."""
    expected = settings.APP_PASSWORD
    if not expected:
        logger.error("app_password_not_configured")
        return False

    ok = secrets.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))
    if ok:
        logger.info("login_succeeded")
    else:
        logger.warning("login_failed")
    return ok


def create_access_token(expires_delta: timedelta | None = None) -> str:
    """Create JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = {
        "sub": SESSION_SUBJECT,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp())
    }

    return jwt.encode(
        payload,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


async def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(security)
) -> str:
    """Validate the bearer token and return the session subject."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        raise credentials_exception

    subject = payload.get("sub")
    if subject != SESSION_SUBJECT:
        raise credentials_exception
    return subject
