"""Account and role assignment models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from storefront.core.extensions import db
from storefront.core.security import default_hasher

from .base import ReprMixin, SoftDeleteMixin, TimestampMixin, UUIDPKMixin, utcnow

if TYPE_CHECKING:
    from .store import Store


class AccountStatus(str, Enum):
    """Lifecycle status of an account."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    BLOCKED = "BLOCKED"


class Role(str, Enum):
    """Authorization roles. ``ADMIN`` wins over ``CUSTOMER``."""

    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"


class Account(UUIDPKMixin, ReprMixin, TimestampMixin, SoftDeleteMixin, db.Model):
    """
    Authentication identity with credential state.

    Fields
    ------
    username : str
        Public handle, trimmed.
    email : str
        Login email. Stored normalized (lowercase, trimmed). Unique among
        non-deleted accounts (partial unique index).
    password_hash : str
        Argon2id hash (write-only setter via ``password``).
    email_verified_at : datetime | None
        Set once an email verification passcode is accepted.
    status : AccountStatus
        ``PENDING`` until email verification succeeds.
    """

    __tablename__ = "accounts"

    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    status: Mapped[AccountStatus] = mapped_column(
        SAEnum(AccountStatus, name="enum_account_status", native_enum=True, create_constraint=True),
        nullable=False,
        default=AccountStatus.PENDING,
    )

    roles: Mapped[list[RoleAssignment]] = relationship(
        "RoleAssignment",
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    store: Mapped[Store | None] = relationship(
        "Store",
        back_populates="owner",
        uselist=False,
        foreign_keys="Store.owner_id",
    )

    __table_args__ = (
        Index(
            "uq_accounts_email",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("ix_accounts_username", "username"),
    )

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """
        Hash and set the password.

        :param raw: Plain text password to hash.
        :type raw: str
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = default_hasher.hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash. Never raises.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; otherwise ``False``.
        :rtype: bool
        """
        return default_hasher.verify(self.password_hash, raw)

    # -------------------- Derived state --------------------
    @property
    def is_email_verified(self) -> bool:
        return self.email_verified_at is not None

    @property
    def role_names(self) -> set[Role]:
        return {assignment.role for assignment in self.roles}

    @property
    def effective_role(self) -> Role:
        """``ADMIN`` if assigned, else ``CUSTOMER``."""
        return Role.ADMIN if Role.ADMIN in self.role_names else Role.CUSTOMER

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Username is required.")
        return value.strip()


class RoleAssignment(ReprMixin, db.Model):
    """One role held by an account; unique per ``(account_id, role)``."""

    __tablename__ = "account_roles"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[Role] = mapped_column(
        SAEnum(Role, name="enum_role", native_enum=True, create_constraint=True),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    account: Mapped[Account] = relationship("Account", back_populates="roles")

    __table_args__ = (
        UniqueConstraint("account_id", "role", name="uq_account_roles_account_id_role"),
        Index("ix_account_roles_account_id", "account_id"),
    )
