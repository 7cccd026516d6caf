from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from sharelinks.models.links import RecipientPermission, VisibilityClass


class RecipientBase(BaseModel):
    recipient: str = Field(min_length=1, max_length=320)
    permission: RecipientPermission = RecipientPermission.view


class RecipientRead(RecipientBase):
    model_config = ConfigDict(from_attributes=True)


class OwnerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None = None


class TrackedLinkCreate(BaseModel):
    file_name: str = Field(min_length=1, max_length=500)
    file_path: str = Field(min_length=1, max_length=4000)
    visibility: VisibilityClass = VisibilityClass.restricted
    recipients: list[RecipientBase] = Field(default_factory=list)
    expires_at: datetime | None = None
    # existing platform URL to track; generated when omitted
    link_url: str | None = Field(default=None, max_length=2048)


class TrackedLinkUpdate(BaseModel):
    visibility: VisibilityClass | None = None
    recipients: list[RecipientBase] | None = None
    expires_at: datetime | None = None


class TrackedLinkRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    file_id: str
    file_name: str
    file_path: str
    visibility: VisibilityClass
    link_url: str
    owner_id: UUID
    owner: OwnerRead | None = None
    recipients: list[RecipientRead] = Field(default_factory=list)
    expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
