from fastapi import APIRouter, HTTPException, status

from supply_ledger.core.auth import create_access_token, verify_app_password
from supply_ledger.core.config import settings
from supply_ledger.schemas.auth import LoginRequest, TokenResponse

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest):
    """Exchange the shared application password for a bearer token"""
    if not verify_app_password(credentials.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect password"
        )

    return TokenResponse(
        access_token=create_access_token(),
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )
