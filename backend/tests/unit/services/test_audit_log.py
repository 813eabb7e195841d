# tests/unit/services/test_audit_log.py
from __future__ import annotations

import logging

from authcore.models.auth_log import AuthLog
from authcore.services._shared.base import ServiceContext
from authcore.services.audit import AuthAuditLog
from sqlalchemy import select


def test_record_writes_one_row(app, db, clock):
    ctx = ServiceContext(ip_address="192.0.2.1", user_agent="x" * 300)
    audit = AuthAuditLog(clock=clock, ctx=ctx)

    assert audit.record("login", "success", user_id=5, method="password") is True

    [row] = db.session.execute(select(AuthLog)).scalars().all()
    assert (row.action, row.status, row.user_id) == ("login", "success", 5)
    assert row.ip_address == "192.0.2.1"
    assert len(row.user_agent) == 255
    assert row.details == {"method": "password"}
    assert row.created_at == clock.now()


def test_record_without_details_or_agent(app, db, clock):
    AuthAuditLog(clock=clock).record("logout", "success")

    row = db.session.execute(select(AuthLog)).scalar_one()
    assert row.details is None
    assert row.user_agent is None


def test_missing_table_falls_back_to_the_log(app, db, clock, caplog):
    AuthLog.__table__.drop(db.engine)
    audit = AuthAuditLog(clock=clock)

    with caplog.at_level(logging.WARNING, logger="authcore.services.audit.service"):
        assert audit.record("refresh", "failure", user_id=3, reason="replay") is False

    assert "audit.refresh.failure" in caplog.text
