from datetime import datetime
from pydantic import BaseModel
from typing import Optional


class FriendRequestIn(BaseModel):
    receiver_id: int


class FriendRequestOut(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class FriendRequestActionOut(BaseModel):
    ok: bool = True
    message: str
    # created, resent or already_friends; only set for sends
    outcome: Optional[str] = None
    request: Optional[FriendRequestOut] = None


class AreFriendsOut(BaseModel):
    friends: bool
