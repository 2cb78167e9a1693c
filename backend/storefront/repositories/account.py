"""Account repository: lookups, roles and credential updates."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import select

from storefront.models.account import Account, AccountStatus, Role, RoleAssignment
from storefront.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Persistence-only repository for :class:`Account`.

    Every lookup excludes soft-deleted rows explicitly. This repository never
    issues tokens or sends mail.
    """

    model = Account

    def _soft_delete(self, instance: Account) -> bool:
        from storefront.services._shared.clock import now_utc

        instance.deleted_at = now_utc()
        return True

    # ---------------------------- Lookup helpers ----------------------------

    def get_active(self, account_id: str) -> Account | None:
        """Fetch a non-deleted account by id.

        :param account_id: Opaque account identifier.
        :returns: Account or ``None`` when missing or soft-deleted.
        """
        stmt = select(Account).where(Account.id == account_id, Account.deleted_at.is_(None))
        return cast(Account | None, self.session.execute(stmt).scalars().first())

    def get_by_email(self, email: str) -> Account | None:
        """Fetch a non-deleted account by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: Account instance or ``None`` when not found.
        :rtype: Account | None
        """
        stmt = select(Account).where(
            Account.email == email.lower().strip(), Account.deleted_at.is_(None)
        )
        return cast(Account | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a non-deleted account uses ``email``."""
        stmt = select(Account.id).where(
            Account.email == email.lower().strip(), Account.deleted_at.is_(None)
        )
        return self.session.execute(stmt).first() is not None

    # ---------------------------- Mutations ----------------------------

    def assign_role(self, account: Account, role: Role) -> RoleAssignment:
        """Attach ``role`` to ``account`` and flush (unique per account/role)."""
        assignment = RoleAssignment(role=role)
        account.roles.append(assignment)
        self.flush()
        return assignment

    def mark_email_verified(self, account: Account, at: datetime) -> Account:
        """Stamp the verification time and promote ``PENDING`` accounts to ``ACTIVE``.

        Accounts in any other status keep it: a suspended account stays
        suspended even after proving control of its mailbox.
        """
        account.email_verified_at = at
        if account.status == AccountStatus.PENDING:
            account.status = AccountStatus.ACTIVE
        self.flush()
        return account

    def set_password(self, account: Account, raw: str) -> None:
        """Re-hash and store a new password.

        :param account: Target account.
        :param raw: Raw password; the model setter hashes it.
        """
        account.password = raw
        self.flush()
