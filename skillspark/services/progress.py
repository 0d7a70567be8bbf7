"""Progress ledger: per-account completion state of roadmap points."""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from skillspark.db.base import utcnow
from skillspark.db.transaction import atomic, storage_errors
from skillspark.db.upsert import upsert_one
from skillspark.exceptions import InvalidArgument
from skillspark.models.progress import ProgressEntry
from skillspark.services.roadmaps import ensure_roadmap_owner, get_roadmap
from skillspark.utils.percent import percentage
from skillspark.utils.roadmap_steps import point_ids

logger = logging.getLogger(__name__)

PROGRESS_KEY = ("account_id", "roadmap_id", "point_id")


def set_completion(
    db: Session,
    account_id: uuid.UUID,
    roadmap_id: uuid.UUID,
    point_id: str,
    is_completed: bool,
    completed_at: Optional[datetime] = None,
) -> ProgressEntry:
    """Insert-or-update the entry keyed by (account, roadmap, point).

    One statement (INSERT ... ON CONFLICT DO UPDATE) so concurrent calls for the
    same point can never leave two rows behind.
    """
    if not point_id:
        raise InvalidArgument("point_id must not be empty")
    ensure_roadmap_owner(db, roadmap_id, account_id)

    if is_completed:
        completed_at = completed_at or utcnow()
    else:
        completed_at = None

    with atomic(db):
        entry = upsert_one(
            db,
            ProgressEntry,
            values={
                "account_id": account_id,
                "roadmap_id": roadmap_id,
                "point_id": point_id,
                "is_completed": is_completed,
                "completed_at": completed_at,
                "updated_at": utcnow(),
            },
            conflict_columns=PROGRESS_KEY,
            update_columns=("is_completed", "completed_at", "updated_at"),
        )
    logger.info(
        "Point %s of roadmap %s marked %s for account %s",
        point_id, roadmap_id, "complete" if is_completed else "incomplete", account_id,
    )
    return entry


def mark_complete(db, account_id, roadmap_id, point_id, completed_at=None) -> ProgressEntry:
    return set_completion(db, account_id, roadmap_id, point_id, True, completed_at)


def mark_incomplete(db, account_id, roadmap_id, point_id) -> ProgressEntry:
    # Keeps the row: the point stays tracked, only the completion is cleared.
    return set_completion(db, account_id, roadmap_id, point_id, False)


def list_progress(db: Session, account_id: uuid.UUID, roadmap_id: uuid.UUID) -> List[ProgressEntry]:
    """Entries of one roadmap. Another account's roadmap raises ForbiddenOwnership."""
    ensure_roadmap_owner(db, roadmap_id, account_id)
    with storage_errors(db):
        return list(
            db.scalars(
                select(ProgressEntry)
                .where(ProgressEntry.account_id == account_id, ProgressEntry.roadmap_id == roadmap_id)
                .order_by(ProgressEntry.created_at.asc())
            )
        )


def list_account_progress(db: Session, account_id: uuid.UUID) -> List[ProgressEntry]:
    with storage_errors(db):
        return list(
            db.scalars(
                select(ProgressEntry)
                .where(ProgressEntry.account_id == account_id)
                .order_by(ProgressEntry.created_at.asc())
            )
        )


def progress_summary(db: Session, account_id: uuid.UUID, roadmap_id: uuid.UUID) -> Dict[str, int]:
    """Completed / total points of a roadmap and the percentage, halves rounded up."""
    roadmap = get_roadmap(db, roadmap_id, account_id=account_id)
    points = point_ids(roadmap.roadmap_data)
    done = {
        entry.point_id
        for entry in list_progress(db, account_id, roadmap_id)
        if entry.is_completed
    }
    completed = len(done.intersection(points))
    total = len(points)
    return {"completed": completed, "total": total, "percentage": percentage(completed, total)}
