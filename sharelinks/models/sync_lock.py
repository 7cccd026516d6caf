from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from sharelinks.db import Base, UTCDateTime


class SyncLock(Base):
    """Leased mutex row shared by every process using the same database."""

    __tablename__ = "sync_locks"

    name: Mapped[str] = mapped_column(String(100), primary_key=True)
    # None when free
    holder: Mapped[str | None] = mapped_column(String(64))
    acquired_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
