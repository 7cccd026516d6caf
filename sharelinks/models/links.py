import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Enum,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharelinks.db import Base, UTCDateTime, utcnow


class VisibilityClass(enum.Enum):
    restricted = "restricted"
    public = "public"


class RecipientPermission(enum.Enum):
    view = "view"
    edit = "edit"
    block_download = "block_download"


class TrackedLink(Base):
    __tablename__ = "tracked_links"
    __table_args__ = (
        Index("ix_tracked_links_owner_id", "owner_id"),
        Index("ix_tracked_links_expires_at", "expires_at"),
        Index("ix_tracked_links_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # sha256 of the file path, not of the file contents
    file_id: Mapped[str] = mapped_column(String(64), nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    file_path: Mapped[str] = mapped_column(String(4000), nullable=False)
    visibility: Mapped[VisibilityClass] = mapped_column(
        Enum(VisibilityClass), nullable=False, default=VisibilityClass.restricted
    )
    link_url: Mapped[str] = mapped_column(String(2048), nullable=False, unique=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow
    )

    owner = relationship("User", back_populates="links")
    recipients = relationship(
        "LinkRecipient",
        back_populates="link",
        cascade="all, delete-orphan",
        order_by="LinkRecipient.recipient",
    )


class LinkRecipient(Base):
    __tablename__ = "link_recipients"
    __table_args__ = (
        UniqueConstraint("link_id", "recipient", name="uq_link_recipients_link_recipient"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    link_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tracked_links.id", ondelete="CASCADE"), nullable=False
    )
    recipient: Mapped[str] = mapped_column(String(320), nullable=False)
    permission: Mapped[RecipientPermission] = mapped_column(
        Enum(RecipientPermission), nullable=False, default=RecipientPermission.view
    )

    link = relationship("TrackedLink", back_populates="recipients")
