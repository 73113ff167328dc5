"""
User-related Pydantic schemas.
"""

from pydantic import BaseModel, ConfigDict


class UserResponse(BaseModel):
    """Schema for user response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
