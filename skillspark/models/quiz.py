"""Quiz: a question set generated for one roadmap.

A roadmap may collect several quizzes over time; the newest is current.
Attempts and saved answers hang off the quiz and go with it.
"""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import relationship

from skillspark.db.base import Base, JSONDocument, utcnow


class Quiz(Base):
    __tablename__ = "quizzes"
    __table_args__ = (
        CheckConstraint("total_questions > 0", name="ck_quizzes_total_questions_positive"),
    )

    id: uuid.UUID = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # FK -> roadmaps.id
    roadmap_id: uuid.UUID = Column(
        Uuid, ForeignKey("roadmaps.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # {"questions": [{"question": ..., "options": [...], "correctAnswer": <index>}, ...]}
    quiz_data = Column(JSONDocument, nullable=False)
    total_questions = Column(Integer, nullable=False)
    difficulty_level = Column(String(32), nullable=False, default="mixed")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    roadmap = relationship("Roadmap", back_populates="quizzes")
    attempts = relationship("QuizAttempt", back_populates="quiz", passive_deletes=True)
    answers = relationship("QuizAnswer", back_populates="quiz", passive_deletes=True)

    @property
    def questions(self) -> list:
        return list((self.quiz_data or {}).get("questions") or [])

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Quiz id={self.id} roadmap={self.roadmap_id} questions={self.total_questions}>"
