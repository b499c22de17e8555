from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey
from . import Base
from .users import utcnow


class Message(Base):
    __tablename__ = 'messages'
    id = Column(Integer, primary_key=True)
    sender_id = Column(Integer, ForeignKey('users.id'), index=True, nullable=False)
    receiver_id = Column(Integer, ForeignKey('users.id'), index=True, nullable=False)
    text = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True, nullable=False)
    __table_args__ = ({'sqlite_autoincrement': True},)
