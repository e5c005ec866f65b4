from pydantic import BaseModel, Field, field_validator
from typing import Optional

from clinic_copilot.enums import Theme, PrivacyLevel
from clinic_copilot.schemas.health_record import CamelModel, UserRecord


class VerifiedIdentity(BaseModel):
    """Identity asserted by the identity provider. Trusted as handed over."""

    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field("", max_length=255)
    picture: Optional[str] = None


class AuthUser(CamelModel):
    id: str
    name: str
    email: str
    picture: Optional[str] = None

    @classmethod
    def from_record(cls, record: UserRecord) -> "AuthUser":
        return cls(id=record.id, name=record.name, email=record.email, picture=record.picture)


class AuthStateResponse(CamelModel):
    signed_in: bool
    user: Optional[AuthUser] = None


class PreferencesUpdate(CamelModel):
    theme: Optional[Theme] = None
    notifications: Optional[bool] = None
    privacy_level: Optional[PrivacyLevel] = None


class UserUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    picture: Optional[str] = None
    preferences: Optional[PreferencesUpdate] = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v):
        # omit name to keep it; null would blank a required field
        if v is None:
            raise ValueError("name cannot be null")
        return v
