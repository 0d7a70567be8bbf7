"""Account domain model.

Only a credential *hash* is ever stored; producing and checking it belongs to
the auth layer. Usernames are unique and never renamed.
"""

import uuid

from sqlalchemy import Column, DateTime, String, Uuid, func
from sqlalchemy.orm import relationship

from skillspark.db.base import Base, utcnow


class Account(Base):
    """Owner of every topic, progress entry and settings record."""

    __tablename__ = "accounts"

    id: uuid.UUID = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # --- auth & identity --- #
    username = Column(String(255), unique=True, nullable=False)
    credential_hash = Column(String(255), nullable=False)

    # --- timestamps --- #
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    # --- relationships --- #
    # rows are removed by ON DELETE CASCADE in the database, never by the ORM
    topics = relationship("Topic", back_populates="account", passive_deletes=True)
    progress_entries = relationship(
        "ProgressEntry", back_populates="account", passive_deletes=True
    )
    settings = relationship(
        "Settings", back_populates="account", uselist=False, passive_deletes=True
    )

    # --- helpers --- #
    def __repr__(self) -> str:  # pragma: no cover
        return f"<Account id={self.id} username={self.username}>"
