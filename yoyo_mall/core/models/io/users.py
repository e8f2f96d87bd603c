"""
Account I/O models for API requests and responses.

Registration and sign-in payloads, the public view of a user, profile,
address and login record schemas.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from .common import ApiModel

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


class UserRead(ApiModel):
    """Public view of an account."""

    id: str
    email: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    role: str
    provider: Optional[str] = None
    email_verified: bool = False
    is_active: bool = True
    created_at: datetime


class RegisterRequest(ApiModel):
    name: str = Field(min_length=2, max_length=50, description="Display name")
    email: EmailStr
    password: str = Field(min_length=8, max_length=50)

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if not PASSWORD_PATTERN.match(value):
            raise ValueError("Password must contain lowercase, uppercase letters and a digit")
        return value

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return value.strip()


class RegisterResponse(ApiModel):
    success: bool = True
    message: str
    user: UserRead


class LoginRequest(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class GoogleLoginRequest(ApiModel):
    id_token: str = Field(min_length=1, description="Google ID token from the browser sign-in flow")


class TokenResponse(ApiModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead


class TokenVerifyResponse(ApiModel):
    valid: bool
    user: dict


class ProfileRead(ApiModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    locale: Optional[str] = None
    timezone: Optional[str] = None


class UserWithProfile(UserRead):
    profile: Optional[ProfileRead] = None


class UserProfileResponse(ApiModel):
    success: bool = True
    data: UserWithProfile
    message: Optional[str] = None


class ProfileUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)
    date_of_birth: Optional[date] = None
    bio: Optional[str] = Field(default=None, max_length=500)
    location: Optional[str] = Field(default=None, max_length=100)
    locale: Optional[str] = Field(default=None, max_length=10)
    timezone: Optional[str] = Field(default=None, max_length=64)


class AddressBase(ApiModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    company: Optional[str] = Field(default=None, max_length=100)
    address_line1: str = Field(min_length=1, max_length=255)
    address_line2: Optional[str] = Field(default=None, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)
    is_default: bool = False


class AddressCreate(AddressBase):
    pass


class AddressUpdate(ApiModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    company: Optional[str] = Field(default=None, max_length=100)
    address_line1: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address_line2: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
    state: Optional[str] = Field(default=None, min_length=1, max_length=100)
    postal_code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    country: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)
    is_default: Optional[bool] = None


class AddressRead(AddressBase):
    id: str
    created_at: datetime


class AddressListResponse(ApiModel):
    success: bool = True
    data: List[AddressRead]


class LoginRecordRead(ApiModel):
    id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    provider: Optional[str] = None
    created_at: datetime


class LoginRecordListResponse(ApiModel):
    success: bool = True
    data: List[LoginRecordRead]
