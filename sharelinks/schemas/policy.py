from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PolicyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    max_duration_internal: int
    max_duration_external: int
    allow_public_sharing: bool
    updated_at: datetime


class PolicyUpdate(BaseModel):
    max_duration_internal: int | None = Field(default=None, ge=0)
    max_duration_external: int | None = Field(default=None, ge=0)
    allow_public_sharing: bool | None = None
