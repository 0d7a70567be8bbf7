from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from skillspark.config import DATABASE_URL, SQL_ECHO


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite ignores FOREIGN KEY clauses (and so ON DELETE CASCADE) unless
    the pragma is switched on for every new connection."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def make_engine(url: str = DATABASE_URL, **kwargs) -> Engine:
    kwargs.setdefault("echo", SQL_ECHO)
    if not url.startswith("sqlite"):
        kwargs.setdefault("pool_pre_ping", True)
    engine = create_engine(url, **kwargs)
    enable_sqlite_foreign_keys(engine)
    return engine


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False)


# Dependency-style session provider
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
