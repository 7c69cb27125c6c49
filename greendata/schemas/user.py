from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from greendata.models.user import Role

class ProfileBase(BaseModel):
    email: EmailStr
    full_name: Optional[str] = None

class ProfileCreate(ProfileBase):
    password: str = Field(..., min_length=6)

class ProfileOut(ProfileBase):
    id: int
    role: Role
    is_admin: bool

    model_config = ConfigDict(from_attributes=True)

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class RefreshRequest(BaseModel):
    refresh_token: str
