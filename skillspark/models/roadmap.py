# Roadmap model definition

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship

from skillspark.db.base import Base, JSONDocument, utcnow


class Roadmap(Base):
    """Persisted curriculum document generated for a topic."""

    __tablename__ = "roadmaps"

    # Primary key
    id: uuid.UUID = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # FK -> topics.id  (the subject this curriculum was built for)
    topic_id: uuid.UUID = Column(
        Uuid, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # The curriculum tree: arbitrary depth, stored verbatim.
    roadmap_data = Column(JSONDocument, nullable=False)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    # -------- relationships -------- #
    topic = relationship("Topic", back_populates="roadmaps")
    progress_entries = relationship(
        "ProgressEntry", back_populates="roadmap", passive_deletes=True
    )
    video_pages = relationship(
        "VideoPage", back_populates="roadmap", passive_deletes=True
    )
    quizzes = relationship("Quiz", back_populates="roadmap", passive_deletes=True)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Roadmap id={self.id} topic_id={self.topic_id}>"
