"""Generic repository base and dialect-aware write helpers for SQLAlchemy 2.x.

This module centralizes persistence-only concerns shared by all repositories:
- Session access with a fallback to the Flask-scoped session.
- Idempotent inserts (``INSERT ... ON CONFLICT DO NOTHING`` / ``INSERT IGNORE``).
- Keyed upserts (``ON CONFLICT DO UPDATE`` / ``ON DUPLICATE KEY UPDATE``).
- No business logic, no commit/rollback; callers own transactions.

Design decisions
----------------
* Every state transition that must be exactly-once is expressed as a single
  statement whose ``rowcount`` tells the caller whether it won. Repositories
  never implement read-then-write pairs for those transitions.
* Dialects without a native conflict clause fall back to a SAVEPOINT around a
  plain ``INSERT`` and treat :class:`~sqlalchemy.exc.IntegrityError` as "row
  already present".
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Table, insert, update
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from authcore.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


def _dialect_name(session: Session) -> str:
    return session.get_bind().dialect.name


def insert_ignore(
    session: Session,
    table: Table,
    values: Mapping[str, Any],
    *,
    conflict_columns: Iterable[str],
) -> bool:
    """Insert ``values`` unless a row with the same unique key exists.

    :param session: Active session (transaction owned by the caller).
    :param table: Target Core table (``Model.__table__``).
    :param values: Column values for the new row.
    :param conflict_columns: Columns of the unique constraint that may clash.
    :returns: ``True`` when this call created the row, ``False`` when it was
        already present.
    :rtype: bool
    """
    dialect = _dialect_name(session)
    cols = list(conflict_columns)
    if dialect == "sqlite":
        stmt: Any = sqlite.insert(table).values(**values)
        stmt = stmt.on_conflict_do_nothing(index_elements=cols)
    elif dialect == "postgresql":
        stmt = postgresql.insert(table).values(**values).on_conflict_do_nothing(index_elements=cols)
    elif dialect in ("mysql", "mariadb"):
        stmt = mysql.insert(table).values(**values).prefix_with("IGNORE")
    else:
        try:
            with session.begin_nested():
                session.execute(insert(table).values(**values))
        except IntegrityError:
            return False
        return True
    result = session.execute(stmt)
    return int(result.rowcount or 0) == 1


def upsert(
    session: Session,
    table: Table,
    values: Mapping[str, Any],
    *,
    key_columns: Iterable[str],
) -> None:
    """Insert ``values`` or overwrite the non-key columns of the existing row.

    :param session: Active session (transaction owned by the caller).
    :param table: Target Core table.
    :param values: Full column set for the row.
    :param key_columns: Columns forming the unique key the upsert is keyed on.
    """
    dialect = _dialect_name(session)
    keys = list(key_columns)
    updates = {k: v for k, v in values.items() if k not in keys}
    if dialect in ("sqlite", "postgresql"):
        ins = (sqlite if dialect == "sqlite" else postgresql).insert(table).values(**values)
        session.execute(ins.on_conflict_do_update(index_elements=keys, set_=updates))
        return
    if dialect in ("mysql", "mariadb"):
        ins_my = mysql.insert(table).values(**values)
        session.execute(ins_my.on_duplicate_key_update(**updates))
        return

    where = [table.c[k] == values[k] for k in keys]
    result = session.execute(update(table).where(*where).values(**updates))
    if int(result.rowcount or 0) == 0 and not insert_ignore(
        session, table, values, conflict_columns=keys
    ):
        # Lost an insert race; the winner's row now exists, overwrite it
        session.execute(update(table).where(*where).values(**updates))


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define ``model``: the SQLAlchemy mapped class.

    This class NEVER opens, commits or rolls back transactions. Units of work
    in :mod:`authcore.uow` own transaction boundaries.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by ``authcore.core.extensions``.

        :param session: Session shared across the Unit of Work scope.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the active SQLAlchemy session.

        :returns: Active session bound to the current Unit of Work.
        :rtype: :class:`sqlalchemy.orm.Session`
        """
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    @property
    def table(self) -> Table:
        """Core table behind ``model`` for statement-level writes."""
        return cast(Table, self.model.__table__)  # type: ignore[attr-defined]

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity for persistence and flush to materialize the PK.

        :param instance: New entity instance.
        :type instance: E
        :returns: The same instance after ``flush()``.
        :rtype: E
        """
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Retrieve a single entity by primary key.

        :param entity_id: Primary-key value.
        :returns: Entity or ``None``.
        """
        return self.session.get(self.model, entity_id)

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.session.flush()
