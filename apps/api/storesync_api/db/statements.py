"""Dialect-aware INSERT builder.

ON CONFLICT is dialect-specific in SQLAlchemy; production runs on Postgres
and the test suite on SQLite, both of which support the same clause.
"""

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def insert_for(db: Session, table: Table):
    """Return an INSERT construct supporting on_conflict_do_nothing/do_update."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise RuntimeError(f"Unsupported database dialect for upsert: {dialect}")
