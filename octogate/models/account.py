"""Account model."""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from octogate.constants import PROFILE_FIELD_MAX_LENGTH, PROVIDER_MAX_LENGTH
from octogate.models.base import Base, TimestampMixin


class Account(Base, TimestampMixin):
    """A local user linked to exactly one OAuth provider identity."""

    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("provider", "external_id", name="uq_accounts_provider_external_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    provider: Mapped[str] = mapped_column(String(PROVIDER_MAX_LENGTH))
    external_id: Mapped[str] = mapped_column(String(PROFILE_FIELD_MAX_LENGTH))

    # Refreshed from the provider on every login
    display_name: Mapped[str] = mapped_column(String(PROFILE_FIELD_MAX_LENGTH))
    nickname: Mapped[str] = mapped_column(String(PROFILE_FIELD_MAX_LENGTH))
    access_token: Mapped[str] = mapped_column(String(PROFILE_FIELD_MAX_LENGTH))

    def __repr__(self) -> str:
        # Never include access_token
        return f"<Account(id={self.id}, provider={self.provider}, nickname={self.nickname})>"
