from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Schema for the shared-password login"""
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Schema for authentication token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
