"""Pydantic schemas for the login payload and API serialization."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class AuthInfo(BaseModel):
    """Profile section of a normalized authentication payload."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    nickname: str = Field(min_length=1)
    access_token: SecretStr = Field(alias="accessToken")

    @field_validator("access_token")
    @classmethod
    def validate_access_token(cls, v: SecretStr) -> SecretStr:
        """Reject blank tokens."""
        if not v.get_secret_value().strip():
            raise ValueError("accessToken must not be empty")
        return v


class AuthPayload(BaseModel):
    """Normalized result of a completed OAuth exchange."""

    provider: str = Field(min_length=1)
    uid: str = Field(min_length=1)
    info: AuthInfo


class AccountRead(BaseModel):
    """Account as exposed to clients (never carries the access token)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    provider: str
    external_id: str
    display_name: str
    nickname: str
    created_at: datetime | None = None
