"""VideoPage: one page of a roadmap level's playlist.

Identity is the full composite key (roadmap, level, page, generation):

* `level` partitions the roadmap into stages ("beginner", "advanced", ...).
* `page_number` paginates within a level, starting at 1.
* `generation_number` versions the whole level playlist. Regenerating writes
  a fresh page sequence under ``max(generation) + 1``; earlier generations
  stay untouched until explicitly pruned.
"""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import relationship

from skillspark.db.base import Base, JSONDocument, utcnow


class VideoPage(Base):
    __tablename__ = "video_pages"
    __table_args__ = (
        CheckConstraint("page_number > 0", name="ck_video_pages_page_number_positive"),
        CheckConstraint("generation_number > 0", name="ck_video_pages_generation_number_positive"),
    )

    # -------- composite key -------- #
    roadmap_id: uuid.UUID = Column(
        Uuid, ForeignKey("roadmaps.id", ondelete="CASCADE"), primary_key=True
    )
    level = Column(String(64), primary_key=True)
    page_number = Column(Integer, primary_key=True)
    generation_number = Column(Integer, primary_key=True)

    # -------- content -------- #
    video_data = Column(JSONDocument, nullable=False)  # ordered list of video references

    # -------- timestamps -------- #
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    # -------- relationships -------- #
    roadmap = relationship("Roadmap", back_populates="video_pages")

    # -------- helpers -------- #
    @property
    def key(self) -> tuple:
        return (self.roadmap_id, self.level, self.page_number, self.generation_number)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<VideoPage roadmap={self.roadmap_id} level={self.level} "
            f"page={self.page_number} gen={self.generation_number}>"
        )
