import enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime
from . import Base


class UserStatus(str, enum.Enum):
    ONLINE = 'ONLINE'
    OFFLINE = 'OFFLINE'
    AWAY = 'AWAY'


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = 'users'
    __table_args__ = ({'sqlite_autoincrement': True},)
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(150), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    # compared verbatim on login, never hashed
    credential = Column(String(255), nullable=False)
    status = Column(String(20), default=UserStatus.OFFLINE.value, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
