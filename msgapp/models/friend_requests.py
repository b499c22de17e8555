import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from . import Base
from .users import utcnow


class FriendStatus(str, enum.Enum):
    PENDING = 'PENDING'
    ACCEPTED = 'ACCEPTED'
    REJECTED = 'REJECTED'


class FriendRequest(Base):
    __tablename__ = 'friend_requests'
    id = Column(Integer, primary_key=True)
    sender_id = Column(Integer, ForeignKey('users.id'), index=True, nullable=False)
    receiver_id = Column(Integer, ForeignKey('users.id'), index=True, nullable=False)
    # unordered pair, low id first; one row per pair whatever the direction
    user_low = Column(Integer, nullable=False)
    user_high = Column(Integer, nullable=False)
    status = Column(String(20), default=FriendStatus.PENDING.value, nullable=False)
    # re-stamped on every status change
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    __table_args__ = (
        UniqueConstraint('user_low', 'user_high', name='uix_friend_request_pair'),
        # ids are never reused after a delete
        {'sqlite_autoincrement': True},
    )
