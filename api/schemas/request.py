"""
Request Pydantic models for API endpoints.
"""
from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Request model for administrator login"""
    email: str = Field(
        ...,
        min_length=1,
        max_length=320,
        description="Administrator email",
        examples=["admin@example.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        description="Administrator password"
    )
