"""Store repository."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from storefront.models.store import Store
from storefront.repositories.base import BaseRepository


class StoreRepository(BaseRepository[Store]):
    """Persistence-only repository for :class:`Store`."""

    model = Store

    def _soft_delete(self, instance: Store) -> bool:
        from storefront.services._shared.clock import now_utc

        instance.deleted_at = now_utc()
        return True

    def name_exists(self, name: str) -> bool:
        """Whether ``name`` is taken, deleted stores included (the constraint is global)."""
        stmt = select(Store.id).where(Store.name == name.strip())
        return self.session.execute(stmt).first() is not None

    def get_by_owner(self, owner_id: str) -> Store | None:
        """Return the owner's non-deleted store, if any."""
        stmt = select(Store).where(Store.owner_id == owner_id, Store.deleted_at.is_(None))
        return cast(Store | None, self.session.execute(stmt).scalars().first())
