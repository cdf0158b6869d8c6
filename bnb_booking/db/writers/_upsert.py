"""
Dialect-aware upsert helper.

PostgreSQL and SQLite both support INSERT ... ON CONFLICT DO UPDATE, but each
dialect ships its own insert() construct. This helper picks the right one from
the connection so writers stay portable between production and tests.
"""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection


def dialect_insert(conn: Connection, table: type) -> Any:
    """
    Return the dialect-specific INSERT construct for the connection.

    Args:
        conn: Active database connection
        table: SQLAlchemy ORM table class

    Raises:
        NotImplementedError: If the dialect has no ON CONFLICT support
    """
    name = conn.dialect.name
    if name == "postgresql":
        return postgresql.insert(table)
    if name == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Upsert is not supported for dialect {name}")


def upsert_rows(
    conn: Connection,
    table: type,
    rows: list[dict[str, Any]],
    conflict_columns: list[str],
    update_columns: list[str],
    where: Any = None,
) -> None:
    """
    Insert rows, replacing update_columns on rows that hit the unique key.

    Args:
        conn: Active database connection (within transaction)
        table: SQLAlchemy ORM table class (e.g., RoomAvailability)
        rows: List of row dicts to upsert
        conflict_columns: Columns of the unique constraint (e.g., ["room_id", "date"])
        update_columns: Columns overwritten when the row already exists
        where: Optional condition on the existing row; rows failing it are left untouched

    Example:
        >>> with engine.begin() as conn:
        ...     upsert_rows(
        ...         conn,
        ...         RoomAvailability,
        ...         rows=[{"room_id": "r1", "date": date(2025, 9, 10), "is_blocked": True}],
        ...         conflict_columns=["room_id", "date"],
        ...         update_columns=["is_blocked", "updated_at"],
        ...     )
    """
    if not rows:
        return

    stmt = dialect_insert(conn, table).values(rows)
    stmt = stmt.on_conflict_do_update(
        index_elements=conflict_columns,
        set_={col: getattr(stmt.excluded, col) for col in update_columns},
        where=where,
    )
    conn.execute(stmt)
