"""
Preference store.
One settings record per account; absence means "use the defaults".
Field values are validated with pydantic before anything is written.
"""

import logging
import uuid
from typing import Any, Dict, Optional

import pydantic
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from skillspark.db.transaction import atomic, storage_errors
from skillspark.db.upsert import upsert_one
from skillspark.db.base import utcnow
from skillspark.exceptions import Conflict, InvalidArgument
from skillspark.models.enums import RoadmapDepthEnum, ThemeEnum, VideoLengthEnum
from skillspark.models.settings import Settings

logger = logging.getLogger(__name__)


# Model for the editable settings fields
class SettingsFields(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(extra="forbid")

    display_name: Optional[str] = None
    description: Optional[str] = None
    theme: ThemeEnum = ThemeEnum.light
    roadmap_depth: RoadmapDepthEnum = RoadmapDepthEnum.detailed
    video_length: VideoLengthEnum = VideoLengthEnum.medium

    @pydantic.field_validator("display_name")
    @classmethod
    def display_name_length(cls, v):
        if v is not None and len(v) > 255:
            raise ValueError("display_name must be at most 255 characters")
        return v


# Returned when an account has never saved settings
class SettingsView(SettingsFields):
    account_id: uuid.UUID
    is_default: bool = True


SETTINGS_FIELDS = tuple(SettingsFields.model_fields)


def _validate(fields: Dict[str, Any]) -> SettingsFields:
    try:
        return SettingsFields(**fields)
    except pydantic.ValidationError as e:
        raise InvalidArgument(str(e)) from None


def _current_fields(row: Optional[Settings]) -> Dict[str, Any]:
    if row is None:
        return {}
    return {name: getattr(row, name) for name in SETTINGS_FIELDS}


def _find(db: Session, account_id: uuid.UUID) -> Optional[Settings]:
    with storage_errors(db):
        return db.scalars(select(Settings).where(Settings.account_id == account_id)).first()


def get_settings(db: Session, account_id: uuid.UUID):
    """The account's Settings row, or a `SettingsView` of the defaults when it has none."""
    row = _find(db, account_id)
    if row is None:
        return SettingsView(account_id=account_id)
    return row


def effective_settings(db: Session, account_id: uuid.UUID) -> SettingsFields:
    """Settings as plain validated values, whether stored or defaulted."""
    return SettingsFields(**_current_fields(_find(db, account_id)))


def upsert_settings(db: Session, account_id: uuid.UUID, fields: Dict[str, Any]) -> Settings:
    """
    Merge `fields` over the stored settings (or the defaults) and save the result.

    The merged record is validated as a whole first; an invalid value raises
    InvalidArgument and leaves the stored row untouched. The stored row is
    read under a row lock in the same transaction as the write, and the
    conflict branch only overwrites the fields given here, so a concurrent
    update of other fields is kept.
    """
    with atomic(db):  # unknown account -> FK violation -> NotFound
        current = db.scalars(
            select(Settings).where(Settings.account_id == account_id).with_for_update()
        ).first()
        merged = _current_fields(current)
        merged.update(fields)
        values = _validate(merged).model_dump()

        row = upsert_one(
            db,
            Settings,
            values={"account_id": account_id, "updated_at": utcnow(), **values},
            conflict_columns=("account_id",),
            update_columns=(*fields, "updated_at"),
        )
    logger.info("Saved settings %s for account %s", sorted(fields), account_id)
    return row


def create_settings(db: Session, account_id: uuid.UUID, fields: Dict[str, Any]) -> Settings:
    """Strict insert: a second row for the same account raises Conflict."""
    validated = _validate(fields)
    row = Settings(account_id=account_id, **validated.model_dump())
    try:
        with atomic(db):
            db.add(row)
            db.flush()
    except Conflict:
        raise Conflict(f"Settings for account {account_id} already exist") from None
    logger.info("Created settings for account %s", account_id)
    return row


def delete_settings(db: Session, account_id: uuid.UUID) -> bool:
    with atomic(db):
        deleted = db.execute(
            delete(Settings).where(Settings.account_id == account_id),
            execution_options={"synchronize_session": False},
        ).rowcount
    return deleted > 0
