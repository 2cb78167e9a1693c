import pytest
from sqlalchemy import text
from storefront.models.account import Account
from storefront.uow import (
    SQLAlchemyReadOnlyUnitOfWork as ROuow,
)
from storefront.uow import (
    SQLAlchemyUnitOfWork as RWuow,
)
from tests.factories.account import AccountFactory


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_blocks_orm_flush_writes(self, app, session):
        """
        Ensure that attempting to flush ORM changes inside the RO UoW raises.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            account = AccountFactory.build()  # not persisted
            uow.session.add(account)
            uow.session.flush()

    def test_blocks_core_dml(self, app, session):
        """
        Ensure that raw SQL DML is blocked at the cursor level.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="SQL statement blocked"):
            uow.session.execute(
                text("DELETE FROM accounts WHERE email = :email"), {"email": "x@example.com"}
            )

    def test_allows_reads(self, app, session):
        AccountFactory(email="reader@example.com")
        session.commit()

        with ROuow() as uow:
            assert uow.accounts.get_by_email("reader@example.com") is not None
            assert uow.session.query(Account).count() >= 1

    def test_attaches_to_running_transaction(self, app, session):
        """
        Uncommitted rows flushed before entering stay visible and survive exit.
        """
        account = AccountFactory()
        account_id = account.id

        with ROuow() as uow:
            assert uow.accounts.get_active(account_id) is not None

        assert session.get(Account, account_id) is not None

    def test_disallows_commit(self, app, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_always_rolls_back_changes(self, app, session):
        """
        Any attempted modifications must not persist after RO UoW exits.
        """
        account = AccountFactory(username="original")
        account_id = account.id
        session.commit()

        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            loaded = uow.session.get(Account, account_id)
            loaded.username = "mutated"
            uow.session.flush()

        with RWuow() as uow:
            persisted = uow.accounts.get(account_id)
            assert persisted.username == "original"

    def test_guards_are_removed_on_exit(self, app, session):
        with ROuow():
            pass

        with RWuow() as uow:
            uow.accounts.add(AccountFactory.build())
