"""Video playlist store.

Pages are addressed by (roadmap, level, page_number, generation_number).
Writing a key twice overwrites that page; regenerating a level means writing a
new page sequence under ``next_generation()``, which leaves every earlier
generation in place. Old generations only disappear through
`prune_generations` / `delete_level`.
"""

import logging
import uuid
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from skillspark.config import ALLOW_SPARSE_VIDEO_PAGES, VIDEO_LEVELS
from skillspark.db.base import utcnow
from skillspark.db.transaction import atomic, storage_errors
from skillspark.db.upsert import upsert_one
from skillspark.exceptions import InvalidArgument, NotFound
from skillspark.models.roadmap import Roadmap
from skillspark.models.video_page import VideoPage
from skillspark.services.roadmaps import ensure_roadmap_owner

logger = logging.getLogger(__name__)

PAGE_KEY = ("roadmap_id", "level", "page_number", "generation_number")


def _positive(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidArgument(f"{name} must be a positive integer, got {value!r}")


def validate_level(level: str) -> None:
    if level not in VIDEO_LEVELS:
        raise InvalidArgument(f"Unknown level {level!r}; expected one of {VIDEO_LEVELS}")


def _max_generation(db: Session, roadmap_id: uuid.UUID, level: str) -> int:
    return db.scalar(
        select(func.coalesce(func.max(VideoPage.generation_number), 0)).where(
            VideoPage.roadmap_id == roadmap_id, VideoPage.level == level
        )
    )


def _page_exists(db: Session, roadmap_id, level, page_number, generation_number) -> bool:
    return db.scalar(
        select(VideoPage.page_number).where(
            VideoPage.roadmap_id == roadmap_id,
            VideoPage.level == level,
            VideoPage.page_number == page_number,
            VideoPage.generation_number == generation_number,
        )
    ) is not None


def _write_page(db, roadmap_id, level, page_number, generation_number, video_data) -> VideoPage:
    """Upsert one page inside the caller's transaction."""
    validate_level(level)
    _positive("page_number", page_number)
    _positive("generation_number", generation_number)
    if not isinstance(video_data, list):
        raise InvalidArgument("video_data must be a list of video entries")

    if (
        not ALLOW_SPARSE_VIDEO_PAGES
        and page_number > 1
        and not _page_exists(db, roadmap_id, level, page_number - 1, generation_number)
    ):
        raise InvalidArgument(
            f"Page {page_number} of {level!r} generation {generation_number} "
            f"would leave a gap: page {page_number - 1} does not exist"
        )

    return upsert_one(
        db,
        VideoPage,
        values={
            "roadmap_id": roadmap_id,
            "level": level,
            "page_number": page_number,
            "generation_number": generation_number,
            "video_data": video_data,
            "updated_at": utcnow(),
        },
        conflict_columns=PAGE_KEY,
        update_columns=("video_data", "updated_at"),
    )


def write_page(
    db: Session,
    roadmap_id: uuid.UUID,
    level: str,
    page_number: int,
    generation_number: int,
    video_data: List[Any],
    account_id: Optional[uuid.UUID] = None,
) -> VideoPage:
    """Insert or replace the page with this exact composite key."""
    if account_id is not None:
        ensure_roadmap_owner(db, roadmap_id, account_id)
    with atomic(db):  # unknown roadmap -> FK violation -> NotFound
        page = _write_page(db, roadmap_id, level, page_number, generation_number, video_data)
    logger.info(
        "Wrote video page roadmap=%s level=%s page=%s generation=%s (%d videos)",
        roadmap_id, level, page_number, generation_number, len(video_data),
    )
    return page


def latest_generation(db: Session, roadmap_id: uuid.UUID, level: str) -> int:
    """Highest generation number of a level, 0 when it has no pages."""
    with storage_errors(db):
        return _max_generation(db, roadmap_id, level)


def next_generation(db: Session, roadmap_id: uuid.UUID, level: str) -> int:
    return latest_generation(db, roadmap_id, level) + 1


def list_generations(db: Session, roadmap_id: uuid.UUID, level: str) -> List[int]:
    with storage_errors(db):
        return list(
            db.scalars(
                select(VideoPage.generation_number)
                .where(VideoPage.roadmap_id == roadmap_id, VideoPage.level == level)
                .distinct()
                .order_by(VideoPage.generation_number)
            )
        )


def list_pages(db: Session, roadmap_id: uuid.UUID, level: str, generation_number: int) -> List[VideoPage]:
    """Pages of exactly one generation, ordered by page number."""
    with storage_errors(db):
        return list(
            db.scalars(
                select(VideoPage)
                .where(
                    VideoPage.roadmap_id == roadmap_id,
                    VideoPage.level == level,
                    VideoPage.generation_number == generation_number,
                )
                .order_by(VideoPage.page_number)
            )
        )


def latest_pages(db: Session, roadmap_id: uuid.UUID, level: str) -> Tuple[int, List[VideoPage]]:
    """Resolve the newest generation and list its pages in a single statement,
    so a concurrent regeneration can't be observed half-way."""
    newest = (
        select(func.max(VideoPage.generation_number))
        .where(VideoPage.roadmap_id == roadmap_id, VideoPage.level == level)
        .scalar_subquery()
    )
    with storage_errors(db):
        pages = list(
            db.scalars(
                select(VideoPage)
                .where(
                    VideoPage.roadmap_id == roadmap_id,
                    VideoPage.level == level,
                    VideoPage.generation_number == newest,
                )
                .order_by(VideoPage.page_number)
            )
        )
    generation = pages[0].generation_number if pages else 0
    return generation, pages


def write_generation(
    db: Session, roadmap_id: uuid.UUID, level: str, pages: Sequence[List[Any]]
) -> int:
    """
    Write a whole new generation for a level as one unit of work.

    The roadmap row is locked while the next generation number is allocated,
    so two concurrent regenerations get distinct numbers.

    Args:
        pages: video entries per page; pages[0] becomes page 1

    Returns:
        The new generation number
    """
    validate_level(level)
    if not pages:
        raise InvalidArgument("A generation needs at least one page")

    with atomic(db):
        locked = db.scalars(select(Roadmap.id).where(Roadmap.id == roadmap_id).with_for_update()).first()
        if locked is None:
            raise NotFound(f"Roadmap {roadmap_id} not found")
        generation = _max_generation(db, roadmap_id, level) + 1
        for page_number, video_data in enumerate(pages, start=1):
            _write_page(db, roadmap_id, level, page_number, generation, video_data)

    logger.info(
        "Wrote generation %s of %r for roadmap %s (%d pages)", generation, level, roadmap_id, len(pages)
    )
    return generation


def prune_generations(db: Session, roadmap_id: uuid.UUID, level: str, keep_latest: int = 1) -> int:
    """
    Delete all but the newest `keep_latest` generations of a level.

    Takes the same roadmap row lock as `write_generation`, and only deletes
    generations older than the oldest one kept, so a generation written while
    the prune runs is never removed.

    Returns:
        The number of deleted pages
    """
    if isinstance(keep_latest, bool) or not isinstance(keep_latest, int) or keep_latest < 0:
        raise InvalidArgument(f"keep_latest must be a non-negative integer, got {keep_latest!r}")

    with atomic(db):
        db.scalars(select(Roadmap.id).where(Roadmap.id == roadmap_id).with_for_update()).first()
        kept = list(
            db.scalars(
                select(VideoPage.generation_number)
                .where(VideoPage.roadmap_id == roadmap_id, VideoPage.level == level)
                .distinct()
                .order_by(VideoPage.generation_number.desc())
                .limit(keep_latest)
            )
        ) if keep_latest else []
        stmt = delete(VideoPage).where(VideoPage.roadmap_id == roadmap_id, VideoPage.level == level)
        if kept:
            stmt = stmt.where(VideoPage.generation_number < min(kept))
        deleted = db.execute(stmt, execution_options={"synchronize_session": False}).rowcount

    logger.info("Pruned %d video pages of %r for roadmap %s (kept generations %s)", deleted, level, roadmap_id, kept)
    return deleted


def delete_level(db: Session, roadmap_id: uuid.UUID, level: str) -> int:
    """Drop every page of a level, all generations."""
    return prune_generations(db, roadmap_id, level, keep_latest=0)
