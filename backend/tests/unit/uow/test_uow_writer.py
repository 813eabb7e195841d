"""
Unit tests for SQLAlchemyUnitOfWork (writer), using factories.
"""

from __future__ import annotations

import pytest
from authcore.models import AuthLog, User
from authcore.uow import SQLAlchemyUnitOfWork
from sqlalchemy import func, select
from tests.factories.user import UserFactory


def _count(db, model) -> int:
    return db.session.execute(select(func.count()).select_from(model)).scalar_one()


class TestSQLAlchemyUnitOfWorkWriter:
    def test_writer_uow_commits_on_success(self, app, db):
        """
        GIVEN a writer UoW
        WHEN a user is added through the repository and the block exits cleanly
        THEN the row is committed and visible afterwards.
        """
        with SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())

        assert _count(db, User) == 1

    def test_writer_uow_rolls_back_on_exception(self, app, db):
        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())
            raise RuntimeError("boom")

        assert _count(db, User) == 0

    def test_repositories_share_one_transaction(self, app, db):
        """
        A failure after writes through two repositories undoes both.
        """
        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())
            uow.auth_logs.add(AuthLog(action="login", status="success"))
            uow.session.flush()
            raise RuntimeError("boom")

        assert _count(db, User) == 0
        assert _count(db, AuthLog) == 0
