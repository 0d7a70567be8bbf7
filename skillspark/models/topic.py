import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import relationship

from skillspark.db.base import Base, utcnow


class Topic(Base):
    """A subject an account explores. Labels are deliberately not unique per account."""

    __tablename__ = "topics"

    id: uuid.UUID = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id: uuid.UUID = Column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    label = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    account = relationship("Account", back_populates="topics")
    roadmaps = relationship("Roadmap", back_populates="topic", passive_deletes=True)

    def __repr__(self):  # pragma: no cover
        return f"<Topic id={self.id} account={self.account_id} label={self.label!r}>"
