"""
SQLAlchemy ORM models
"""
import uuid
from datetime import date as date_type, datetime

from sqlalchemy import (
    String, Text, Date, DateTime, Boolean, ForeignKey, UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from workhub.infrastructure.db.session import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class AuthUser(Base):
    """
    Credential record owned by the identity provider.

    Only IdentityProvider reads or writes this table.
    """
    __tablename__ = "auth_users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    user_metadata: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    email_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class Profile(Base):
    """
    Account: internal identity with role and status
    """
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), ForeignKey("auth_users.id"), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="member", server_default="member")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # LINE messaging link (at most one account per LINE user)
    line_user_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    line_linked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    line_linking_code: Mapped[str | None] = mapped_column(String(6), nullable=True, index=True)
    line_linking_code_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class UserIdentity(Base):
    """
    External identity link: (provider, provider_uid) -> account id
    """
    __tablename__ = "user_identities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    provider_uid: Mapped[str] = mapped_column(String(128), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("auth_users.id"), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("provider", "provider_uid", name="uq_user_identities_provider_uid"),
    )


class Report(Base):
    """
    Daily report: yesterday's actuals + today's plan for one account and date
    """
    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    report_date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)

    # [{"task_name": str, "actual_hours": float, "completed": bool}, ...]
    yesterday_tasks: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    # [{"task_name": str, "planned_hours": float}, ...]
    today_tasks: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "report_date", name="uq_reports_user_date"),
    )
