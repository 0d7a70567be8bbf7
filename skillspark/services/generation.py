"""
Generation workflow.
Reads the account's preferences, asks the (external) generator for content and
hands the result to the stores. The generator is always called before any
write transaction is opened; its latency and retries are its own business.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.orm import Session

from skillspark.config import VIDEO_PAGE_SIZE
from skillspark.exceptions import ForbiddenOwnership, InvalidArgument
from skillspark.models.enums import RoadmapDepthEnum, VideoLengthEnum
from skillspark.models.quiz import Quiz
from skillspark.models.roadmap import Roadmap
from skillspark.services.quizzes import (
    create_quiz,
    current_quiz,
    prune_used_questions,
    record_used_questions,
    replace_quiz,
    used_question_texts,
)
from skillspark.services.roadmaps import get_roadmap, upsert_roadmap
from skillspark.services.settings import effective_settings
from skillspark.services.topics import get_topic
from skillspark.services.videos import validate_level, write_generation
from skillspark.utils.roadmap_steps import assign_step_ids, level_steps

logger = logging.getLogger(__name__)


class Generator(Protocol):
    """Producer of roadmap documents and video lists (an LLM / video search backend)."""

    def generate_roadmap(self, topic: str, depth: RoadmapDepthEnum) -> Dict[str, Any]:
        ...

    def generate_videos(
        self,
        topic: str,
        level: str,
        steps: List[Dict[str, Any]],
        video_length: VideoLengthEnum,
        count: int,
    ) -> List[Dict[str, Any]]:
        ...

    def generate_quiz(self, topic: str, roadmap: Dict[str, Any], avoid: List[str]) -> Dict[str, Any]:
        ...


def paginate(videos: List[Any], page_size: int) -> List[List[Any]]:
    if page_size < 1:
        raise InvalidArgument(f"page_size must be positive, got {page_size}")
    return [videos[i:i + page_size] for i in range(0, len(videos), page_size)]


def build_roadmap(
    db: Session,
    account_id: uuid.UUID,
    topic_id: uuid.UUID,
    generator: Generator,
    policy: Optional[str] = None,
) -> Roadmap:
    """Generate a roadmap for a topic at the account's preferred depth and store it."""
    topic = get_topic(db, topic_id)
    if topic.account_id != account_id:
        raise ForbiddenOwnership(f"Topic {topic_id} is not owned by account {account_id}")
    prefs = effective_settings(db, account_id)
    label = topic.label
    db.rollback()  # don't hold a transaction open while the generator runs

    logger.info("Generating %s roadmap for topic %s", prefs.roadmap_depth.value, topic_id)
    document = generator.generate_roadmap(label, prefs.roadmap_depth)
    return upsert_roadmap(db, topic_id, assign_step_ids(document), policy=policy)


def regenerate_playlist(
    db: Session,
    account_id: uuid.UUID,
    roadmap_id: uuid.UUID,
    level: str,
    generator: Generator,
    page_size: int = VIDEO_PAGE_SIZE,
    pages: int = 1,
) -> int:
    """
    Produce a fresh playlist for one roadmap level.

    The videos are split into pages and written as a new generation; every
    previous generation stays listable.

    Args:
        account_id: Requesting account; must own the roadmap
        level: Level label, e.g. "beginner"
        generator: Content producer
        page_size: Videos per page
        pages: How many pages to request from the generator

    Returns:
        The generation number the pages were written under
    """
    validate_level(level)
    if pages < 1 or page_size < 1:
        raise InvalidArgument(f"pages and page_size must be positive, got {pages}, {page_size}")
    roadmap = get_roadmap(db, roadmap_id, account_id=account_id)
    prefs = effective_settings(db, account_id)
    steps = level_steps(roadmap.roadmap_data, level)
    topic_label = roadmap.topic.label
    db.rollback()

    videos = generator.generate_videos(
        topic_label, level, steps, prefs.video_length, page_size * pages
    )
    if not videos:
        raise InvalidArgument(f"Generator returned no videos for {level!r}")

    return write_generation(db, roadmap_id, level, paginate(list(videos), page_size))


def _generate_quiz(db: Session, account_id: uuid.UUID, roadmap_id: uuid.UUID, generator: Generator, store) -> Quiz:
    roadmap = get_roadmap(db, roadmap_id, account_id=account_id)
    topic_label = roadmap.topic.label
    document = roadmap.roadmap_data
    avoid = used_question_texts(db, account_id, roadmap_id)
    db.rollback()

    quiz_data = generator.generate_quiz(topic_label, document, avoid)
    quiz = store(db, roadmap_id, quiz_data, account_id=account_id)
    record_used_questions(db, account_id, roadmap_id, quiz.questions)
    prune_used_questions(db, account_id, roadmap_id)
    return quiz


def quiz_for_roadmap(db: Session, account_id: uuid.UUID, roadmap_id: uuid.UUID, generator: Generator) -> Quiz:
    """The roadmap's current quiz, generating and storing one first if it has none."""
    quiz = current_quiz(db, roadmap_id, account_id=account_id)
    if quiz is not None:
        return quiz
    logger.info("No quiz yet for roadmap %s, generating one", roadmap_id)
    return _generate_quiz(db, account_id, roadmap_id, generator, create_quiz)


def regenerate_quiz(db: Session, account_id: uuid.UUID, roadmap_id: uuid.UUID, generator: Generator) -> Quiz:
    """
    Replace the roadmap's quizzes with a freshly generated one.

    The generator is told which questions the account has already seen so it
    can avoid repeating them. Old quizzes, their attempts and saved answers
    are dropped together with storing the new quiz; a generator result without
    questions is InvalidArgument and leaves the old quiz in place.
    """
    logger.info("Regenerating quiz for roadmap %s", roadmap_id)
    return _generate_quiz(db, account_id, roadmap_id, generator, replace_quiz)
