import uuid
from datetime import datetime

from sqlalchemy import Boolean, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sharelinks.db import Base, UTCDateTime, utcnow

DEFAULT_POLICY_NAME = "default"


class Policy(Base):
    __tablename__ = "policies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True, default=DEFAULT_POLICY_NAME
    )
    max_duration_internal: Mapped[int] = mapped_column(Integer, nullable=False)
    max_duration_external: Mapped[int] = mapped_column(Integer, nullable=False)
    allow_public_sharing: Mapped[bool] = mapped_column(Boolean, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow
    )
