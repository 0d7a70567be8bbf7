"""
Quiz store.
Quizzes belong to a roadmap. Attempts and answers saved mid-quiz belong to a
quiz and an account; the used-question history belongs to an account and a
roadmap. Deleting the roadmap (or the account) removes all of it through
ON DELETE CASCADE.
"""

import hashlib
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from skillspark.config import QUIZ_AVOID_RECENT, USED_QUESTIONS_KEEP
from skillspark.db.base import utcnow
from skillspark.db.transaction import atomic, storage_errors
from skillspark.db.upsert import insert_missing, upsert_one
from skillspark.exceptions import InvalidArgument, NotFound
from skillspark.models.quiz import Quiz
from skillspark.models.quiz_answer import QuizAnswer
from skillspark.models.quiz_attempt import QuizAttempt
from skillspark.models.roadmap import Roadmap
from skillspark.models.used_question import UsedQuestion
from skillspark.services.roadmaps import ensure_roadmap_owner
from skillspark.utils.percent import percentage

logger = logging.getLogger(__name__)

ANSWER_KEY = ("quiz_id", "account_id", "question_index")
USED_QUESTION_KEY = ("account_id", "roadmap_id", "question_hash")


def _questions(quiz_data: Any) -> List[Any]:
    questions = quiz_data.get("questions") if isinstance(quiz_data, dict) else None
    if not isinstance(questions, list) or not questions:
        raise InvalidArgument("quiz_data must hold a non-empty 'questions' list")
    return questions


def _non_negative(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgument(f"{name} must be a non-negative integer, got {value!r}")


def _lock_roadmap(db: Session, roadmap_id: uuid.UUID) -> None:
    if db.scalars(select(Roadmap.id).where(Roadmap.id == roadmap_id).with_for_update()).first() is None:
        raise NotFound(f"Roadmap {roadmap_id} not found")


# ---------------------------------------------------------------- quizzes


def create_quiz(
    db: Session,
    roadmap_id: uuid.UUID,
    quiz_data: Dict[str, Any],
    difficulty_level: str = "mixed",
    account_id: Optional[uuid.UUID] = None,
) -> Quiz:
    """Add a quiz to a roadmap; earlier quizzes of the roadmap are kept."""
    questions = _questions(quiz_data)
    if account_id is not None:
        ensure_roadmap_owner(db, roadmap_id, account_id)
    quiz = Quiz(
        roadmap_id=roadmap_id,
        quiz_data=quiz_data,
        total_questions=len(questions),
        difficulty_level=difficulty_level,
    )
    with atomic(db):  # unknown roadmap -> FK violation -> NotFound
        db.add(quiz)
    logger.info("Created quiz %s for roadmap %s (%d questions)", quiz.id, roadmap_id, len(questions))
    return quiz


def replace_quiz(
    db: Session,
    roadmap_id: uuid.UUID,
    quiz_data: Dict[str, Any],
    difficulty_level: str = "mixed",
    account_id: Optional[uuid.UUID] = None,
) -> Quiz:
    """Drop every quiz of the roadmap (with attempts and saved answers) and store a new one,
    as one unit of work."""
    questions = _questions(quiz_data)
    if account_id is not None:
        ensure_roadmap_owner(db, roadmap_id, account_id)
    with atomic(db):
        _lock_roadmap(db, roadmap_id)
        dropped = db.execute(
            delete(Quiz).where(Quiz.roadmap_id == roadmap_id),
            execution_options={"synchronize_session": False},
        ).rowcount
        quiz = Quiz(
            roadmap_id=roadmap_id,
            quiz_data=quiz_data,
            total_questions=len(questions),
            difficulty_level=difficulty_level,
        )
        db.add(quiz)
    logger.info("Replaced %d quiz(zes) of roadmap %s with quiz %s", dropped, roadmap_id, quiz.id)
    return quiz


def get_quiz(db: Session, quiz_id: uuid.UUID, account_id: Optional[uuid.UUID] = None) -> Quiz:
    with storage_errors(db):
        quiz = db.scalars(select(Quiz).where(Quiz.id == quiz_id)).first()
    if quiz is None:
        raise NotFound(f"Quiz {quiz_id} not found")
    if account_id is not None:
        ensure_roadmap_owner(db, quiz.roadmap_id, account_id)
    return quiz


def current_quiz(db: Session, roadmap_id: uuid.UUID, account_id: Optional[uuid.UUID] = None) -> Optional[Quiz]:
    """Newest quiz of a roadmap, None when it has none yet."""
    if account_id is not None:
        ensure_roadmap_owner(db, roadmap_id, account_id)
    with storage_errors(db):
        return db.scalars(
            select(Quiz).where(Quiz.roadmap_id == roadmap_id).order_by(Quiz.created_at.desc()).limit(1)
        ).first()


def update_quiz(
    db: Session, roadmap_id: uuid.UUID, quiz_data: Dict[str, Any], difficulty_level: str = "mixed"
) -> Quiz:
    """Rewrite the current quiz of a roadmap in place. Its attempts are kept."""
    questions = _questions(quiz_data)
    quiz = current_quiz(db, roadmap_id)
    if quiz is None:
        raise NotFound(f"Roadmap {roadmap_id} has no quiz to update")
    with atomic(db):
        quiz.quiz_data = quiz_data
        flag_modified(quiz, "quiz_data")
        quiz.total_questions = len(questions)
        quiz.difficulty_level = difficulty_level
        quiz.updated_at = utcnow()
    logger.info("Updated quiz %s of roadmap %s", quiz.id, roadmap_id)
    return quiz


def delete_quizzes(db: Session, roadmap_id: uuid.UUID, account_id: Optional[uuid.UUID] = None) -> int:
    """Delete all quizzes of a roadmap; attempts and saved answers cascade. Returns the quiz count."""
    if account_id is not None:
        ensure_roadmap_owner(db, roadmap_id, account_id)
    with atomic(db):
        deleted = db.execute(
            delete(Quiz).where(Quiz.roadmap_id == roadmap_id),
            execution_options={"synchronize_session": False},
        ).rowcount
    logger.info("Deleted %d quiz(zes) of roadmap %s", deleted, roadmap_id)
    return deleted


# ---------------------------------------------------------------- attempts


def grade_answers(questions: List[Any], answers: List[Dict[str, Any]]) -> Tuple[int, List[Dict[str, Any]]]:
    """
    Compare each answer's ``selectedOption`` with the question's ``correctAnswer``.

    Args:
        questions: The quiz questions, in order
        answers: One ``{"selectedOption": int, "timeSpent": int}`` per answered question

    Returns:
        (score, graded answers as stored on the attempt)
    """
    if len(answers) > len(questions):
        raise InvalidArgument(f"{len(answers)} answers for a quiz of {len(questions)} questions")

    score = 0
    graded = []
    for index, answer in enumerate(answers):
        if not isinstance(answer, dict):
            raise InvalidArgument(f"Answer {index} must be an object, got {answer!r}")
        question = questions[index] if isinstance(questions[index], dict) else {}
        selected = answer.get("selectedOption")
        is_correct = selected is not None and question.get("correctAnswer") == selected
        if is_correct:
            score += 1
        graded.append({
            "questionId": question.get("id") or f"q{index + 1}",
            "selectedOption": selected,
            "isCorrect": is_correct,
            "timeSpent": answer.get("timeSpent") or 0,
        })
    return score, graded


def submit_attempt(
    db: Session,
    quiz_id: uuid.UUID,
    account_id: uuid.UUID,
    answers: List[Dict[str, Any]],
    time_taken: Optional[int] = None,
) -> QuizAttempt:
    """
    Grade and record one attempt of a quiz.

    The quiz row is locked while the next attempt number is allocated. Answers
    the account saved while taking the quiz are cleared in the same
    transaction.
    """
    if not isinstance(answers, list):
        raise InvalidArgument("answers must be a list")
    if time_taken is not None:
        _non_negative("time_taken", time_taken)

    quiz = get_quiz(db, quiz_id, account_id=account_id)
    total = quiz.total_questions
    score, graded = grade_answers(quiz.questions, answers)

    with atomic(db):
        if db.scalars(select(Quiz.id).where(Quiz.id == quiz_id).with_for_update()).first() is None:
            raise NotFound(f"Quiz {quiz_id} not found")
        previous = db.scalar(
            select(func.coalesce(func.max(QuizAttempt.attempt_number), 0)).where(
                QuizAttempt.quiz_id == quiz_id, QuizAttempt.account_id == account_id
            )
        )
        attempt = QuizAttempt(
            quiz_id=quiz_id,
            account_id=account_id,
            attempt_number=previous + 1,
            user_answers={"answers": graded, "metadata": {"totalTimeSpent": time_taken or 0}},
            score=score,
            total_questions=total,
            percentage=percentage(score, total),
            time_taken=time_taken,
            completed_at=utcnow(),
        )
        db.add(attempt)
        db.execute(
            delete(QuizAnswer).where(QuizAnswer.quiz_id == quiz_id, QuizAnswer.account_id == account_id),
            execution_options={"synchronize_session": False},
        )

    logger.info(
        "Attempt %d of quiz %s by account %s: %d/%d",
        attempt.attempt_number, quiz_id, account_id, score, total,
    )
    return attempt


def list_attempts(
    db: Session, account_id: uuid.UUID, roadmap_id: Optional[uuid.UUID] = None
) -> List[QuizAttempt]:
    """An account's attempts, newest first; limited to one roadmap when given."""
    stmt = select(QuizAttempt).where(QuizAttempt.account_id == account_id)
    if roadmap_id is not None:
        ensure_roadmap_owner(db, roadmap_id, account_id)
        stmt = stmt.join(Quiz, Quiz.id == QuizAttempt.quiz_id).where(Quiz.roadmap_id == roadmap_id)
    with storage_errors(db):
        return list(
            db.scalars(stmt.order_by(QuizAttempt.completed_at.desc(), QuizAttempt.attempt_number.desc()))
        )


def has_attempts(db: Session, roadmap_id: uuid.UUID) -> bool:
    with storage_errors(db):
        found = db.scalar(
            select(QuizAttempt.id)
            .join(Quiz, Quiz.id == QuizAttempt.quiz_id)
            .where(Quiz.roadmap_id == roadmap_id)
            .limit(1)
        )
    return found is not None


def quiz_statistics(db: Session, roadmap_id: uuid.UUID) -> Dict[str, Any]:
    """Attempt count and best / worst / average percentage over every quiz of a roadmap."""
    with storage_errors(db):
        row = db.execute(
            select(
                func.count(QuizAttempt.id),
                func.avg(QuizAttempt.percentage),
                func.max(QuizAttempt.percentage),
                func.min(QuizAttempt.percentage),
                func.avg(QuizAttempt.time_taken),
            )
            .join(Quiz, Quiz.id == QuizAttempt.quiz_id)
            .where(Quiz.roadmap_id == roadmap_id)
        ).one()
    total, avg_pct, best, worst, avg_time = row
    return {
        "total_attempts": total,
        "avg_percentage": float(avg_pct or 0),
        "best_percentage": best or 0,
        "worst_percentage": worst or 0,
        "avg_time_seconds": int(avg_time or 0),
    }


# ---------------------------------------------------------------- saved answers


def save_answer(
    db: Session,
    quiz_id: uuid.UUID,
    account_id: uuid.UUID,
    question_index: int,
    selected_option: int,
    time_spent: Optional[int] = None,
) -> QuizAnswer:
    """Insert-or-update the answer to one question of a quiz in progress."""
    _non_negative("question_index", question_index)
    _non_negative("selected_option", selected_option)
    if time_spent is not None:
        _non_negative("time_spent", time_spent)

    quiz = get_quiz(db, quiz_id, account_id=account_id)
    if question_index >= quiz.total_questions:
        raise InvalidArgument(f"Quiz {quiz_id} has no question {question_index}")

    with atomic(db):
        answer = upsert_one(
            db,
            QuizAnswer,
            values={
                "quiz_id": quiz_id,
                "account_id": account_id,
                "question_index": question_index,
                "selected_option": selected_option,
                "time_spent": time_spent,
                "updated_at": utcnow(),
            },
            conflict_columns=ANSWER_KEY,
            update_columns=("selected_option", "time_spent", "updated_at"),
        )
    return answer


def list_answers(db: Session, quiz_id: uuid.UUID, account_id: uuid.UUID) -> List[QuizAnswer]:
    get_quiz(db, quiz_id, account_id=account_id)
    with storage_errors(db):
        return list(
            db.scalars(
                select(QuizAnswer)
                .where(QuizAnswer.quiz_id == quiz_id, QuizAnswer.account_id == account_id)
                .order_by(QuizAnswer.question_index)
            )
        )


def clear_answers(db: Session, quiz_id: uuid.UUID, account_id: uuid.UUID) -> int:
    with atomic(db):
        cleared = db.execute(
            delete(QuizAnswer).where(QuizAnswer.quiz_id == quiz_id, QuizAnswer.account_id == account_id),
            execution_options={"synchronize_session": False},
        ).rowcount
    return cleared


# ---------------------------------------------------------------- used questions


def question_hash(text: str) -> str:
    """sha256 of the case- and whitespace-normalised question text."""
    return hashlib.sha256(text.strip().lower().encode("utf-8")).hexdigest()


def _question_text(question: Any) -> Optional[str]:
    if isinstance(question, dict):
        question = question.get("question") or question.get("text")
    if isinstance(question, str) and question.strip():
        return question
    return None


def record_used_questions(
    db: Session, account_id: uuid.UUID, roadmap_id: uuid.UUID, questions: Iterable[Any]
) -> int:
    """Remember questions served to an account for a roadmap. Already known ones are skipped.

    Returns the number of distinct questions submitted.
    """
    ensure_roadmap_owner(db, roadmap_id, account_id)
    now = utcnow()
    rows = {}
    for question in questions:
        text = _question_text(question)
        if text is None:
            continue
        digest = question_hash(text)
        rows.setdefault(digest, {
            "id": uuid.uuid4(),
            "account_id": account_id,
            "roadmap_id": roadmap_id,
            "question_text": text,
            "question_hash": digest,
            "used_at": now,
        })

    with atomic(db):
        insert_missing(db, UsedQuestion, rows.values(), USED_QUESTION_KEY)
    logger.debug("Recorded %d used questions for roadmap %s", len(rows), roadmap_id)
    return len(rows)


def _used_questions(account_id: uuid.UUID, roadmap_id: uuid.UUID):
    return select(UsedQuestion).where(
        UsedQuestion.account_id == account_id, UsedQuestion.roadmap_id == roadmap_id
    )


def used_question_texts(
    db: Session, account_id: uuid.UUID, roadmap_id: uuid.UUID, limit: int = QUIZ_AVOID_RECENT
) -> List[str]:
    """Most recently used question texts, newest first."""
    with storage_errors(db):
        return [
            used.question_text
            for used in db.scalars(
                _used_questions(account_id, roadmap_id).order_by(UsedQuestion.used_at.desc()).limit(limit)
            )
        ]


def used_question_hashes(db: Session, account_id: uuid.UUID, roadmap_id: uuid.UUID) -> Set[str]:
    with storage_errors(db):
        return {used.question_hash for used in db.scalars(_used_questions(account_id, roadmap_id))}


def filter_unused(questions: Iterable[Any], used_hashes: Set[str]) -> List[Any]:
    """Questions whose text has not been served before."""
    unused = []
    for question in questions:
        text = _question_text(question)
        if text is None or question_hash(text) not in used_hashes:
            unused.append(question)
    return unused


def prune_used_questions(
    db: Session, account_id: uuid.UUID, roadmap_id: uuid.UUID, keep: int = USED_QUESTIONS_KEEP
) -> int:
    """Keep only the `keep` most recently used questions. Returns the number deleted."""
    _non_negative("keep", keep)
    newest = (
        select(UsedQuestion.id)
        .where(UsedQuestion.account_id == account_id, UsedQuestion.roadmap_id == roadmap_id)
        .order_by(UsedQuestion.used_at.desc())
        .limit(keep)
    )
    with atomic(db):
        deleted = db.execute(
            delete(UsedQuestion).where(
                UsedQuestion.account_id == account_id,
                UsedQuestion.roadmap_id == roadmap_id,
                UsedQuestion.id.not_in(newest),
            ),
            execution_options={"synchronize_session": False},
        ).rowcount
    if deleted:
        logger.info("Pruned %d used questions of roadmap %s", deleted, roadmap_id)
    return deleted
