from pydantic import BaseModel, Field, field_serializer
from typing import Optional
from datetime import datetime

from bazaar.core.security import sanitize_text

class UserRegister(BaseModel):
    username: str
    password: str
    bio: str = ""

class UserLogin(BaseModel):
    username: str
    password: str

class PasswordUpdate(BaseModel):
    old_password: str
    new_password: str

class BioUpdate(BaseModel):
    bio: str

class BalanceUpdate(BaseModel):
    amount: int

class BanRequest(BaseModel):
    days: int = Field(7, description="Ban length in days, 1-365")

class UserOut(BaseModel):
    username: str
    bio: Optional[str] = None
    is_admin: bool = False
    can_login: bool
    ban_expiry: Optional[datetime] = None
    balance: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_serializer("bio")
    def _sanitize_bio(self, bio: Optional[str]):
        return sanitize_text(bio)

class PublicUserOut(BaseModel):
    username: str
    bio: Optional[str] = None
    is_admin: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_serializer("bio")
    def _sanitize_bio(self, bio: Optional[str]):
        return sanitize_text(bio)

class BannedUserOut(BaseModel):
    username: str
    ban_expiry: Optional[datetime] = None
    currently_banned: bool
    days_remaining: int

class Token(BaseModel):
    user: UserOut
    token: str
    token_type: str = "bearer"
    expires_at: int  # epoch millis
