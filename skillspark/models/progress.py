"""ProgressEntry: completion state of one roadmap point for one account."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from skillspark.db.base import Base, utcnow


class ProgressEntry(Base):
    __tablename__ = "roadmap_progress"
    __table_args__ = (
        # target of the ON CONFLICT clause in the progress upsert
        UniqueConstraint("account_id", "roadmap_id", "point_id", name="uq_progress_account_roadmap_point"),
    )

    id: uuid.UUID = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # --------- foreign keys --------- #
    account_id: uuid.UUID = Column(
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    roadmap_id: uuid.UUID = Column(
        Uuid,
        ForeignKey("roadmaps.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # --------- state --------- #
    point_id = Column(String(255), nullable=False)  # e.g. "step_3"
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # --------- timestamps --------- #
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    # --------- relationships --------- #
    account = relationship("Account", back_populates="progress_entries")
    roadmap = relationship("Roadmap", back_populates="progress_entries")

    def __repr__(self):  # pragma: no cover
        return f"<ProgressEntry roadmap={self.roadmap_id} point={self.point_id} done={self.is_completed}>"
