import enum
import uuid
from datetime import datetime

from sqlalchemy import Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharelinks.db import Base, UTCDateTime, utcnow


class UserRole(enum.Enum):
    user = "user"
    admin = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), nullable=False, default=UserRole.user
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)

    links = relationship("TrackedLink", back_populates="owner")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin
