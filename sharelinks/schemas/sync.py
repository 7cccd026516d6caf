from pydantic import BaseModel


class SyncAccepted(BaseModel):
    message: str = "Synchronization started"
