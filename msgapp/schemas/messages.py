from datetime import datetime
from pydantic import BaseModel


class MessageIn(BaseModel):
    receiver_id: int
    text: str


class MessageOut(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    text: str
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
