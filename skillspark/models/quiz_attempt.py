import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from skillspark.db.base import Base, JSONDocument, utcnow


class QuizAttempt(Base):
    """One graded submission of a quiz. Attempts are numbered per account and quiz, from 1."""

    __tablename__ = "quiz_attempts"
    __table_args__ = (
        UniqueConstraint("quiz_id", "account_id", "attempt_number", name="uq_quiz_attempts_number"),
        CheckConstraint("attempt_number > 0", name="ck_quiz_attempts_number_positive"),
        CheckConstraint("score >= 0 AND score <= total_questions", name="ck_quiz_attempts_score_range"),
    )

    id: uuid.UUID = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id: uuid.UUID = Column(
        Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id: uuid.UUID = Column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    attempt_number = Column(Integer, nullable=False)
    # {"answers": [{"questionId", "selectedOption", "isCorrect", "timeSpent"}, ...], "metadata": {...}}
    user_answers = Column(JSONDocument, nullable=False)
    score = Column(Integer, nullable=False)
    total_questions = Column(Integer, nullable=False)
    percentage = Column(Integer, nullable=False)
    time_taken = Column(Integer, nullable=True)  # seconds

    completed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    quiz = relationship("Quiz", back_populates="attempts")

    def __repr__(self):  # pragma: no cover
        return f"<QuizAttempt quiz={self.quiz_id} #{self.attempt_number} {self.score}/{self.total_questions}>"
