"""
Read models shared by the registration and session services.

Services never hand ORM instances to the API layer; these frozen views are
built inside the Unit of Work, before commit expires the instances.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from storefront.models.account import Account
from storefront.models.store import Store


@dataclass(frozen=True, slots=True)
class StoreSummary:
    """
    :param id: Store identifier.
    :type id: str
    :param name: Globally unique store name.
    :type name: str
    :param description: Optional free text.
    :type description: str | None
    """

    id: str
    name: str
    description: str | None = None

    @classmethod
    def from_model(cls, store: Store) -> StoreSummary:
        return cls(id=store.id, name=store.name, description=store.description)


@dataclass(frozen=True, slots=True)
class AccountSummary:
    """
    Public-safe account view.

    :param id: Account identifier.
    :param username: Public handle.
    :param email: Normalized login email.
    :param status: Lifecycle status name.
    :param role: Effective role name (``ADMIN`` wins).
    :param roles: Every assigned role name, sorted.
    :param email_verified_at: Verification time or ``None``.
    :param created_at: Creation time.
    :param store: Owned store, if any.
    """

    id: str
    username: str
    email: str
    status: str
    role: str
    roles: list[str] = field(default_factory=list)
    email_verified_at: datetime | None = None
    created_at: datetime | None = None
    store: StoreSummary | None = None

    @property
    def is_verified(self) -> bool:
        return self.email_verified_at is not None

    @classmethod
    def from_model(cls, account: Account, store: Store | None = None) -> AccountSummary:
        return cls(
            id=account.id,
            username=account.username,
            email=account.email,
            status=account.status.value,
            role=account.effective_role.value,
            roles=sorted(role.value for role in account.role_names),
            email_verified_at=account.email_verified_at,
            created_at=account.created_at,
            store=StoreSummary.from_model(store) if store is not None else None,
        )


@dataclass(frozen=True, slots=True)
class OtpDispatchOut:
    """
    Acknowledgement of a passcode request.

    :param email: Address the code was (or would have been) sent to.
    :param expires_in_minutes: Validity window of the code.
    """

    email: str
    expires_in_minutes: int
