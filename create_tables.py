import logging

from skillspark.config import LOG_LEVEL
from skillspark.db.base import Base
from skillspark.db.session import engine
import skillspark.models  # noqa: F401

logger = logging.getLogger("create_tables")


def init_db():
    """Create every table directly from the models (local bootstrap; use Alembic elsewhere)."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully!")


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    init_db()
