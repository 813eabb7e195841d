"""Concrete adapters (PyJWT, SQLAlchemy, Redis) for the service-layer ports."""
