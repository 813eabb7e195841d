"""
Explicit, opt-in schema repair for databases that predate a migration.

Read paths never create tables. This routine is run from
``flask auth repair-schema`` or once at start-up when ``AUTO_REPAIR_SCHEMA``
is enabled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import Column, MetaData, inspect, text
from sqlalchemy.engine import Engine

from authcore.core.extensions import db

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RepairReport:
    """
    Outcome of one :meth:`SchemaRepair.run`.

    :ivar created_tables: Tables that were (or would be) created.
    :ivar added_columns: ``table.column`` entries added (or planned).
    :ivar skipped_columns: Missing columns that cannot be added safely
        (``NOT NULL`` without a server default).
    :ivar dry_run: Whether changes were only planned.
    """

    created_tables: list[str] = field(default_factory=list)
    added_columns: list[str] = field(default_factory=list)
    skipped_columns: list[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.created_tables or self.added_columns)

    def summary(self) -> str:
        verb = "would create" if self.dry_run else "created"
        parts = [
            f"{verb} {len(self.created_tables)} table(s)",
            f"{'would add' if self.dry_run else 'added'} {len(self.added_columns)} column(s)",
        ]
        if self.skipped_columns:
            parts.append(f"skipped {len(self.skipped_columns)} column(s)")
        return ", ".join(parts)


class SchemaRepair:
    """
    Bring the live schema up to the declared models without dropping anything.

    :param metadata: Declared metadata; defaults to the Flask-SQLAlchemy one.
    :param engine: Target engine; defaults to ``db.engine``.
    """

    def __init__(self, metadata: MetaData | None = None, engine: Engine | None = None) -> None:
        self.metadata = metadata if metadata is not None else db.metadata
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine if self._engine is not None else db.engine

    def run(self, dry_run: bool = False) -> RepairReport:
        report = RepairReport(dry_run=dry_run)
        insp = inspect(self.engine)
        existing = set(insp.get_table_names())

        missing = [t for t in self.metadata.sorted_tables if t.name not in existing]
        for table in missing:
            report.created_tables.append(table.name)
            log.warning("schema.repair.create_table %s", table.name, extra={"action": "repair"})
        if missing and not dry_run:
            self.metadata.create_all(self.engine, tables=missing)

        for table in self.metadata.sorted_tables:
            if table.name not in existing:
                continue
            present = {c["name"] for c in insp.get_columns(table.name)}
            for column in table.columns:
                if column.name in present:
                    continue
                label = f"{table.name}.{column.name}"
                if not column.nullable and column.server_default is None:
                    report.skipped_columns.append(label)
                    log.error("schema.repair.skip_column %s", label, extra={"action": "repair"})
                    continue
                report.added_columns.append(label)
                log.warning("schema.repair.add_column %s", label, extra={"action": "repair"})
                if not dry_run:
                    self._add_column(table.name, column)
        return report

    def _add_column(self, table_name: str, column: Column) -> None:
        dialect = self.engine.dialect
        preparer = dialect.identifier_preparer
        col_type = column.type.compile(dialect=dialect)
        ddl = (
            f"ALTER TABLE {preparer.quote(table_name)} "
            f"ADD COLUMN {preparer.quote(column.name)} {col_type}"
        )
        if column.server_default is not None:
            default = column.server_default.arg  # type: ignore[attr-defined]
            if isinstance(default, str):
                rendered = "'" + default.replace("'", "''") + "'"
            else:
                rendered = str(default.compile(dialect=dialect))
            ddl += f" DEFAULT {rendered}"
        if not column.nullable:
            ddl += " NOT NULL"
        with self.engine.begin() as conn:
            conn.execute(text(ddl))
