import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid, func

from skillspark.db.base import Base, utcnow


class UsedQuestion(Base):
    """A question already served to an account for a roadmap, so new quizzes can avoid it."""

    __tablename__ = "used_questions"
    __table_args__ = (
        UniqueConstraint("account_id", "roadmap_id", "question_hash", name="uq_used_questions_hash"),
    )

    id: uuid.UUID = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id: uuid.UUID = Column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    roadmap_id: uuid.UUID = Column(
        Uuid, ForeignKey("roadmaps.id", ondelete="CASCADE"), nullable=False, index=True
    )

    question_text = Column(Text, nullable=False)
    question_hash = Column(String(64), nullable=False)  # sha256 hex of the normalised text

    used_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    def __repr__(self):  # pragma: no cover
        return f"<UsedQuestion roadmap={self.roadmap_id} hash={self.question_hash[:8]}>"
