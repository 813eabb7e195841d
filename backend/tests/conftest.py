"""Pytest fixtures for the authcore test-suite.

Every test that needs persistence gets a fresh application bound to an
in-memory SQLite database. The SQL adapters commit their own units of work,
so isolation comes from recreating the schema per test instead of rolling
back a SAVEPOINT.
"""

from __future__ import annotations

import os

import pytest
from authcore.core.config import TestingConfig
from authcore.core.extensions import db as _db
from authcore.factory import create_app
from authcore.services import registry
from authcore.services._shared.ports import FrozenClock


@pytest.fixture()
def clock():
    """Manually driven clock shared by services, signers and adapters.

    Returns
    -------
    FrozenClock
        Clock starting at 2024-01-01T12:00:00Z.
    """
    return FrozenClock()


@pytest.fixture()
def app(clock):
    """Create a Flask application configured for testing.

    Parameters
    ----------
    clock: FrozenClock
        Injected into the service registry so tests can move time forward.

    Yields
    ------
    flask.Flask
        Application with :class:`TestingConfig` applied, tables created and
        an application context pushed.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    application = create_app(TestingConfig)
    application.logger.setLevel("WARNING")
    registry.init_app(application, clock=clock)
    with application.app_context():
        _db.create_all()
        yield application
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def db(app):
    """Return the database extension bound to ``app``."""
    return _db


@pytest.fixture()
def session(db):
    """Wire Factory Boy to the Flask-scoped session.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        The same session the SQL adapters use.
    """
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(db.session)
    yield db.session
    SQLAlchemySession.set(None)


@pytest.fixture()
def services(app):
    """Application-wide services built by the registry."""
    return registry.get_services()


@pytest.fixture()
def client(app):
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture()
def runner(app):
    """Return a CLI runner for the ``flask auth`` commands."""
    return app.test_cli_runner()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk
