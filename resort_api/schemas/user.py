from datetime import date, datetime
from typing import List, Optional, Union
from uuid import UUID

from resort_api.models.users import UserRole
from resort_api.schemas.base import CamelModel


class Address(CamelModel):
    """Postal address; missing parts are stored as empty strings"""
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class UserRegister(CamelModel):
    """
    Registration and admin-creation payload

    Every field is optional at the schema level so that missing values get
    the same message as blank ones.
    """
    name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None


class UserLogin(CamelModel):
    email_or_username: Optional[str] = None
    password: Optional[str] = None


class UserProfileUpdate(CamelModel):
    """Partial profile update; only fields present in the body are applied"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    username: Optional[str] = None
    address: Optional[Union[Address, str]] = None
    date_of_birth: Optional[str] = None
    profile_picture: Optional[str] = None


class UserResponse(CamelModel):
    """User response schema (without sensitive data)"""
    id: UUID
    name: str
    username: str
    email: str
    phone: str
    role: UserRole
    is_active: bool
    address: Optional[Address] = None
    date_of_birth: Optional[date] = None
    profile_picture: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserEnvelope(CamelModel):
    user: UserResponse


class UserMessageResponse(CamelModel):
    message: str
    user: UserResponse


class AuthResponse(CamelModel):
    """Returned by register and login"""
    message: str
    user: UserResponse
    token: str


class UserListResponse(CamelModel):
    users: List[UserResponse]
