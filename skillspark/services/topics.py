"""Topic registry."""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from skillspark.db.transaction import atomic, storage_errors
from skillspark.exceptions import InvalidArgument, NotFound
from skillspark.models.topic import Topic

logger = logging.getLogger(__name__)


def create_topic(db: Session, account_id: uuid.UUID, label: str) -> Topic:
    # No dedup on label: the same subject may be explored in parallel.
    if not label or not label.strip():
        raise InvalidArgument("Topic label must not be empty")
    topic = Topic(account_id=account_id, label=label)
    with atomic(db):  # unknown account -> FK violation -> NotFound
        db.add(topic)
    logger.info("Created topic %s for account %s", topic.id, account_id)
    return topic


def get_topic(db: Session, topic_id: uuid.UUID) -> Topic:
    with storage_errors(db):
        topic = db.scalars(select(Topic).where(Topic.id == topic_id)).first()
    if topic is None:
        raise NotFound(f"Topic {topic_id} not found")
    return topic


def list_topics(db: Session, account_id: uuid.UUID) -> List[Topic]:
    """Topics of an account, oldest first."""
    with storage_errors(db):
        return list(
            db.scalars(
                select(Topic)
                .where(Topic.account_id == account_id)
                .order_by(Topic.created_at.asc(), Topic.id)
            )
        )


def find_topic_by_label(db: Session, account_id: uuid.UUID, label: str) -> Optional[Topic]:
    """Most recently created topic with this label, if any."""
    with storage_errors(db):
        return db.scalars(
            select(Topic)
            .where(Topic.account_id == account_id, Topic.label == label)
            .order_by(Topic.created_at.desc())
        ).first()


def delete_topic(db: Session, topic_id: uuid.UUID) -> None:
    with atomic(db):
        result = db.execute(
            delete(Topic).where(Topic.id == topic_id),
            execution_options={"synchronize_session": False},
        )
        if result.rowcount == 0:
            raise NotFound(f"Topic {topic_id} not found")
    logger.info("Deleted topic %s", topic_id)
