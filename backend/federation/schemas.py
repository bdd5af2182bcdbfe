# federation/schemas.py
from datetime import datetime, date
from typing import Optional, Literal

from pydantic import BaseModel, EmailStr, Field

CredentialState = Literal["ACTIVE", "INACTIVE", "SUSPENDED", "EXPIRED"]
PassAuthorization = Literal["AUTHORIZED", "PENDING", "REJECTED"]
UserRole = Literal["ADMIN", "USER"]


# -----------------------------
# AUTH
# -----------------------------
class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: Optional[int] = None
    role: Optional[str] = None


# -----------------------------
# STAFF USERS
# -----------------------------
class UserOut(BaseModel):
    id: int
    email: EmailStr
    full_name: Optional[str] = None
    role: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserCreateIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: Optional[str] = None
    role: UserRole = "USER"


class UserUpdateIn(BaseModel):
    full_name: Optional[str] = None
    role: Optional[UserRole] = None


class UserActiveIn(BaseModel):
    is_active: bool


class PasswordResetIn(BaseModel):
    password: str = Field(min_length=8)


# -----------------------------
# CLUBS
# -----------------------------
class ClubIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True


class ClubUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None


class ClubOut(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool
    created_at: datetime

    # Filled in by the router
    person_count: Optional[int] = None

    class Config:
        from_attributes = True


# -----------------------------
# PERSONS (affiliates)
# -----------------------------
class PersonIn(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    dni: str = Field(min_length=1, max_length=20)
    birth_date: date
    club_id: Optional[int] = None
    category: Optional[str] = None
    category_level: Optional[str] = None
    roles: list[str] = Field(default_factory=list)
    affiliation_number: Optional[int] = None
    photo_url: Optional[str] = None


class PersonUpdateIn(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    dni: Optional[str] = Field(default=None, min_length=1, max_length=20)
    birth_date: Optional[date] = None
    club_id: Optional[int] = None
    category: Optional[str] = None
    category_level: Optional[str] = None
    roles: Optional[list[str]] = None
    affiliation_number: Optional[int] = None
    photo_url: Optional[str] = None


class PersonOut(BaseModel):
    id: int
    full_name: str
    dni: str
    birth_date: date
    club_id: Optional[int] = None
    club_name: Optional[str] = None
    category: Optional[str] = None
    category_level: Optional[str] = None
    roles: list[str] = Field(default_factory=list)
    affiliation_number: Optional[int] = None
    photo_url: Optional[str] = None

    license_date: Optional[date] = None
    license_expiry: Optional[date] = None
    license_state: str
    created_at: datetime

    class Config:
        from_attributes = True


# -----------------------------
# CREDENTIALS
# -----------------------------
class CredentialCreateIn(BaseModel):
    person_id: int
    issue_date: Optional[date] = None


class CredentialUpdateIn(BaseModel):
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    state: Optional[CredentialState] = None
    suspension_reason: Optional[str] = None


class CredentialSuspendIn(BaseModel):
    reason: str = Field(min_length=1, max_length=255)


class CredentialStatusOut(BaseModel):
    remaining: str
    is_valid: bool
    display_state: str
    badge: str


class CredentialOut(BaseModel):
    id: int
    identifier: str
    issue_date: date
    expiry_date: date
    state: str
    suspension_reason: Optional[str] = None
    person_id: int
    created_at: datetime

    # Derived on read
    status: Optional[CredentialStatusOut] = None
    verification_url: Optional[str] = None

    class Config:
        from_attributes = True


class PersonCredentialsOut(BaseModel):
    person_id: int
    total: int
    selected_credential_id: Optional[int] = None
    credentials: list[CredentialOut]


class RefreshStatesOut(BaseModel):
    total: int
    updated: int


# -----------------------------
# PASSES
# -----------------------------
class PassCreateIn(BaseModel):
    person_id: int
    destination_club_id: Optional[int] = None
    destination_club_name: Optional[str] = None
    origin_club_id: Optional[int] = None
    origin_club_name: Optional[str] = None
    pass_date: Optional[date] = None
    reason: Optional[str] = None
    observations: Optional[str] = None


class PassAuthorizationIn(BaseModel):
    authorization: PassAuthorization
    observations: Optional[str] = None


class PassOut(BaseModel):
    id: int
    person_id: int
    origin_club_id: Optional[int] = None
    origin_club_name: Optional[str] = None
    destination_club_id: int
    destination_club_name: str
    pass_date: date
    authorization: str
    reason: Optional[str] = None
    observations: Optional[str] = None
    affiliate_snapshot: Optional[dict] = None
    created_at: datetime

    # Derived on read
    display_state: Optional[str] = None
    badge: Optional[str] = None

    class Config:
        from_attributes = True
