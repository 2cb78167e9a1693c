"""Factory Boy definition for :class:`storefront.models.account.Account`."""

from __future__ import annotations

from storefront.models.account import Account, AccountStatus, Role, RoleAssignment
from storefront.models.base import utcnow

import factory
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class AccountFactory(BaseFactory):
    """
    Build persisted, login-ready :class:`Account` instances.

    Notes
    -----
    - Defaults to an ``ACTIVE`` account with a verified email and the
      ``CUSTOMER`` role; use ``pending=True`` for a fresh registration.
    - ``password`` and ``role`` are post-generation hooks so hashing goes
      through the model setter and roles through the relationship.
    """

    class Meta:
        model = Account

    class Params:
        pending = factory.Trait(
            status=AccountStatus.PENDING,
            email_verified_at=None,
        )

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    status = AccountStatus.ACTIVE
    email_verified_at = factory.LazyFunction(utcnow)
    password_hash = factory.LazyFunction(lambda: "")  # set via postgen

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """Set password using model setter (ensures hashing)."""
        obj.password = extracted or DEFAULT_PASSWORD

    @factory.post_generation
    def role(obj, create, extracted, **kwargs):
        """Attach one role, ``CUSTOMER`` unless another is passed."""
        obj.roles.append(RoleAssignment(role=extracted or Role.CUSTOMER))
