from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from . import Base
from .users import utcnow


class SessionToken(Base):
    __tablename__ = 'session_tokens'
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), index=True, nullable=False)
    username = Column(String(150), nullable=False)
    token_hash = Column(String(128), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    __table_args__ = ({'sqlite_autoincrement': True},)
