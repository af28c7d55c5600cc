from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint, func

from tubetutor.db.base import Base


class AIContent(Base):
    """Generated study aids, shared by every playlist entry of the same YouTube video."""

    __tablename__ = "ai_contents"
    __table_args__ = (UniqueConstraint("video_id", "kind", "variant", name="uq_ai_contents_video_kind_variant"),)

    id = Column(Integer, primary_key=True, index=True)
    video_id = Column(String(64), nullable=False, index=True)  # YouTube video id

    # summary | quiz | notes
    kind = Column(String(20), nullable=False, index=True)
    # notes format | quiz question count | "" for summary
    variant = Column(String(20), nullable=False, default="")

    provider = Column(String(20), nullable=True)
    content_json = Column(Text, nullable=False)  # JSON string

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
