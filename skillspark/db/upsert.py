"""Dialect-specific INSERT constructs for "insert, on conflict update / do nothing"."""

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def insert_for(db: Session, model):
    """Return an ORM-enabled INSERT for `model` that supports `on_conflict_do_update`."""
    dialect = db.get_bind().dialect.name
    try:
        return _INSERTS[dialect](model)
    except KeyError:
        raise NotImplementedError(f"No upsert support for dialect {dialect!r}") from None


def upsert_one(db: Session, model, values: dict, conflict_columns, update_columns):
    """INSERT `values`; on a conflict over `conflict_columns` overwrite `update_columns`.

    Returns the persisted ORM instance, refreshed from the row RETURNING gave back.
    """
    stmt = insert_for(db, model).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={name: stmt.excluded[name] for name in update_columns},
    )
    return db.scalars(
        stmt.returning(model), execution_options={"populate_existing": True}
    ).one()


def insert_missing(db: Session, model, rows, conflict_columns) -> None:
    """INSERT `rows` in one statement, silently skipping those that conflict over `conflict_columns`."""
    rows = list(rows)
    if not rows:
        return
    stmt = insert_for(db, model).on_conflict_do_nothing(index_elements=list(conflict_columns))
    db.execute(stmt, rows)
