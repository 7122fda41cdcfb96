"""Media library models backed by the CDN."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from .users import new_id, utcnow

DEFAULT_FOLDER_NAME = "All Files"


class MediaType(str, enum.Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    DOCUMENT = "DOCUMENT"
    OTHER = "OTHER"


class MediaFolder(Base):
    __tablename__ = "media_folders"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("media_folders.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    parent: Mapped[MediaFolder | None] = relationship(
        "MediaFolder", remote_side="MediaFolder.id", back_populates="children"
    )
    children: Mapped[list[MediaFolder]] = relationship(
        "MediaFolder", back_populates="parent", order_by="MediaFolder.name"
    )
    media: Mapped[list[Media]] = relationship(
        "Media", back_populates="folder", order_by="Media.created_at"
    )


class Media(Base):
    """A file uploaded to the CDN and tracked locally."""

    __tablename__ = "media"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    file_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=MediaType.OTHER.value
    )
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    alt_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    folder_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("media_folders.id"), nullable=True
    )
    # Identifier assigned by the CDN, needed to delete the remote file
    file_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    folder: Mapped[MediaFolder | None] = relationship("MediaFolder", back_populates="media")


Index("ix_media_folder_id", Media.folder_id)
Index("ix_media_folders_parent_id", MediaFolder.parent_id)
