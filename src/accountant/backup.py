"""
JSON backup and restore of every mapped table.

Document layout:

    {"version": "1.0.0", "timestamp": "...", "tables": {"purchases": [...], ...}}
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from accountant import db
from accountant.exceptions import ValidationError
from accountant.ledger.store import atomic

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0.0"


def _json_value(value):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _column_value(column: sa.Column, value):
    """Convert a JSON value back into what the column type expects."""
    if value is None:
        return None
    try:
        if isinstance(column.type, sa.DateTime) and isinstance(value, str):
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        if isinstance(column.type, sa.Numeric) and not isinstance(column.type, sa.Float):
            return Decimal(str(value))
    except (ValueError, InvalidOperation):
        raise ValidationError(f"Invalid value for {column.table.name}.{column.name}")
    if isinstance(column.type, sa.Boolean):
        return bool(value)
    return value


def create_backup() -> dict:
    """Dump every table. A table that cannot be read is backed up empty."""
    document = {
        "version": BACKUP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "tables": {},
    }
    for table in db.metadata.sorted_tables:
        try:
            rows = db.session.execute(sa.select(table)).mappings().all()
        except SQLAlchemyError:
            logger.error("Error backing up table %s", table.name, exc_info=True)
            db.session.rollback()
            rows = []
        document["tables"][table.name] = [
            {key: _json_value(value) for key, value in row.items()} for row in rows
        ]
    return document


def backup_info() -> dict:
    counts = {}
    for table in db.metadata.sorted_tables:
        counts[table.name] = db.session.execute(
            sa.select(sa.func.count()).select_from(table)
        ).scalar_one()
    return {
        "tables": counts,
        "total_records": sum(counts.values()),
    }


def _reset_sequence(table: sa.Table) -> None:
    if "id" not in table.c:
        return
    db.session.execute(sa.text(
        f"SELECT setval(pg_get_serial_sequence('{table.name}', 'id'), "
        f"COALESCE((SELECT MAX(id) FROM {table.name}), 0) + 1, false)"
    ))


def restore_backup(document) -> dict:
    """
    Replace the contents of every table named in the document, in one
    transaction. Unknown tables and unknown columns are ignored.
    """
    if not isinstance(document, dict) or not isinstance(document.get("tables"), dict):
        raise ValidationError("Invalid backup file format")

    tables = document["tables"]
    known = {table.name: table for table in db.metadata.sorted_tables}
    skipped = sorted(name for name in tables if name not in known)
    restored = {}

    with atomic("restoring backup"):
        # children first on delete, parents first on insert
        for table in reversed(db.metadata.sorted_tables):
            if table.name in tables:
                db.session.execute(table.delete())

        for table in db.metadata.sorted_tables:
            rows = tables.get(table.name)
            if rows is None:
                continue
            if not isinstance(rows, list):
                raise ValidationError(f"Table {table.name} must be a list of rows")
            if not all(isinstance(row, dict) for row in rows):
                raise ValidationError(f"Rows of {table.name} must be objects")
            values = [
                {
                    key: _column_value(table.c[key], value)
                    for key, value in row.items()
                    if key in table.c
                }
                for row in rows
            ]
            if values:
                db.session.execute(table.insert(), values)
            restored[table.name] = len(values)

        if db.engine.dialect.name == "postgresql":
            for name in restored:
                _reset_sequence(known[name])

    for name in skipped:
        logger.warning("Backup table %s does not exist, skipped", name)
    logger.info("Backup restored: %s", restored)
    return {"restored": restored, "skipped": skipped}
