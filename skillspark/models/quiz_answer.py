"""QuizAnswer: an answer saved while a quiz is in progress, before submission."""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid, func
from sqlalchemy.orm import relationship

from skillspark.db.base import Base, utcnow


class QuizAnswer(Base):
    __tablename__ = "quiz_progress"
    __table_args__ = (
        # one saved answer per question; saving again overwrites it
        UniqueConstraint("quiz_id", "account_id", "question_index", name="uq_quiz_progress_question"),
        CheckConstraint("question_index >= 0", name="ck_quiz_progress_question_index"),
        CheckConstraint("selected_option >= 0", name="ck_quiz_progress_selected_option"),
    )

    id: uuid.UUID = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id: uuid.UUID = Column(
        Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id: uuid.UUID = Column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )

    question_index = Column(Integer, nullable=False)  # 0-based
    selected_option = Column(Integer, nullable=False)  # 0-based
    time_spent = Column(Integer, nullable=True)  # seconds

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    quiz = relationship("Quiz", back_populates="answers")

    def __repr__(self):  # pragma: no cover
        return f"<QuizAnswer quiz={self.quiz_id} q={self.question_index} option={self.selected_option}>"
