import uuid

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import relationship

from skillspark.db.base import Base, utcnow
from skillspark.models.enums import RoadmapDepthEnum, ThemeEnum, VideoLengthEnum


class Settings(Base):
    """Per-account generation defaults and display fields. At most one row per account."""

    __tablename__ = "account_settings"

    id: uuid.UUID = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id: uuid.UUID = Column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    # Personal information
    display_name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    # Appearance / learning preferences
    theme = Column(
        Enum(ThemeEnum, name="theme_enum", create_constraint=True),
        nullable=False,
        default=ThemeEnum.light,
    )
    roadmap_depth = Column(
        Enum(RoadmapDepthEnum, name="roadmap_depth_enum", create_constraint=True),
        nullable=False,
        default=RoadmapDepthEnum.detailed,
    )
    video_length = Column(
        Enum(VideoLengthEnum, name="video_length_enum", create_constraint=True),
        nullable=False,
        default=VideoLengthEnum.medium,
    )

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    account = relationship("Account", back_populates="settings")

    def __repr__(self):  # pragma: no cover
        return f"<Settings account={self.account_id} theme={self.theme} depth={self.roadmap_depth}>"
