"""Roadmap store.

The roadmap document is opaque here: whatever JSON-like structure the
generator produced is stored verbatim. How a topic's existing roadmap is
treated on upsert is the named regeneration policy (see
`skillspark.config.ROADMAP_REGENERATION_POLICY`).
"""

import logging
import uuid
from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, contains_eager
from sqlalchemy.orm.attributes import flag_modified

from skillspark.config import ROADMAP_REGENERATION_POLICY
from skillspark.db.base import utcnow
from skillspark.db.transaction import atomic, storage_errors
from skillspark.exceptions import ForbiddenOwnership, InvalidArgument, NotFound
from skillspark.models.enums import RoadmapPolicyEnum
from skillspark.models.roadmap import Roadmap
from skillspark.models.topic import Topic

logger = logging.getLogger(__name__)


def _policy(policy) -> RoadmapPolicyEnum:
    try:
        return RoadmapPolicyEnum(policy or ROADMAP_REGENERATION_POLICY)
    except ValueError:
        raise InvalidArgument(f"Unknown roadmap regeneration policy {policy!r}") from None


def _check_document(document: Any) -> None:
    if document is None:
        raise InvalidArgument("Roadmap document must not be empty")


def roadmap_owner(db: Session, roadmap_id: uuid.UUID) -> uuid.UUID:
    """Account id owning a roadmap (through its topic)."""
    with storage_errors(db):
        owner = db.scalar(
            select(Topic.account_id).join(Roadmap, Roadmap.topic_id == Topic.id).where(Roadmap.id == roadmap_id)
        )
    if owner is None:
        raise NotFound(f"Roadmap {roadmap_id} not found")
    return owner


def ensure_roadmap_owner(db: Session, roadmap_id: uuid.UUID, account_id: Optional[uuid.UUID]) -> None:
    """Raise NotFound for a missing roadmap, ForbiddenOwnership for someone else's."""
    owner = roadmap_owner(db, roadmap_id)
    if account_id is not None and owner != account_id:
        raise ForbiddenOwnership(f"Roadmap {roadmap_id} is not owned by account {account_id}")


def upsert_roadmap(db: Session, topic_id: uuid.UUID, document: Any, policy=None) -> Roadmap:
    """
    Store a roadmap document for a topic.

    With the ``replace`` policy the topic's current roadmap (the newest one) is
    overwritten in place and its ``updated_at`` bumped; a new row is inserted
    only when the topic has none. With ``version`` every call inserts a new row.

    Args:
        topic_id: Topic the roadmap belongs to
        document: Curriculum document, stored verbatim
        policy: "replace" / "version"; defaults to the configured policy

    Returns:
        The created or replaced Roadmap
    """
    policy = _policy(policy)
    _check_document(document)

    with atomic(db):
        # Lock the topic row so concurrent upserts for one topic serialise
        topic = db.scalars(select(Topic).where(Topic.id == topic_id).with_for_update()).first()
        if topic is None:
            raise NotFound(f"Topic {topic_id} not found")

        roadmap = None
        if policy is RoadmapPolicyEnum.replace:
            roadmap = db.scalars(
                select(Roadmap)
                .where(Roadmap.topic_id == topic_id)
                .order_by(Roadmap.created_at.desc())
                .limit(1)
            ).first()

        if roadmap is None:
            roadmap = Roadmap(topic_id=topic_id, roadmap_data=document)
            db.add(roadmap)
            action = "Created"
        else:
            roadmap.roadmap_data = document
            roadmap.updated_at = utcnow()
            # an identical document must still count as a write
            flag_modified(roadmap, "roadmap_data")
            action = "Replaced"
        db.flush()

    logger.info("%s roadmap %s for topic %s (policy=%s)", action, roadmap.id, topic_id, policy.value)
    return roadmap


def update_roadmap(
    db: Session, roadmap_id: uuid.UUID, document: Any, account_id: Optional[uuid.UUID] = None
) -> Roadmap:
    """Replace the document of one specific roadmap."""
    _check_document(document)
    roadmap = get_roadmap(db, roadmap_id, account_id=account_id)
    with atomic(db):
        roadmap.roadmap_data = document
        roadmap.updated_at = utcnow()
        flag_modified(roadmap, "roadmap_data")
    logger.info("Updated roadmap %s", roadmap_id)
    return roadmap


def get_roadmap(db: Session, roadmap_id: uuid.UUID, account_id: Optional[uuid.UUID] = None) -> Roadmap:
    if account_id is not None:
        ensure_roadmap_owner(db, roadmap_id, account_id)
    with storage_errors(db):
        roadmap = db.scalars(select(Roadmap).where(Roadmap.id == roadmap_id)).first()
    if roadmap is None:
        raise NotFound(f"Roadmap {roadmap_id} not found")
    return roadmap


def current_roadmap(db: Session, topic_id: uuid.UUID) -> Roadmap:
    """Newest roadmap of a topic."""
    with storage_errors(db):
        roadmap = db.scalars(
            select(Roadmap).where(Roadmap.topic_id == topic_id).order_by(Roadmap.created_at.desc()).limit(1)
        ).first()
    if roadmap is None:
        raise NotFound(f"Topic {topic_id} has no roadmap")
    return roadmap


def list_roadmaps(db: Session, account_id: uuid.UUID) -> List[Roadmap]:
    """All roadmaps of an account, newest first, with `topic` loaded."""
    with storage_errors(db):
        return list(
            db.scalars(
                select(Roadmap)
                .join(Roadmap.topic)
                .options(contains_eager(Roadmap.topic))
                .where(Topic.account_id == account_id)
                .order_by(Roadmap.created_at.desc())
            )
        )


def delete_roadmap(db: Session, roadmap_id: uuid.UUID, account_id: Optional[uuid.UUID] = None) -> None:
    """Delete a roadmap; its progress entries and video pages cascade in the database.
    The owning topic is kept."""
    if account_id is not None:
        ensure_roadmap_owner(db, roadmap_id, account_id)
    with atomic(db):
        result = db.execute(
            delete(Roadmap).where(Roadmap.id == roadmap_id),
            execution_options={"synchronize_session": False},
        )
        if result.rowcount == 0:
            raise NotFound(f"Roadmap {roadmap_id} not found")
    logger.info("Deleted roadmap %s", roadmap_id)
