"""User directory: registration, lookup, search, profile updates and presence."""
import logging
from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import IntegrityError

from ..models import AsyncSessionLocal
from ..models.users import User, UserStatus
from ..models.friend_requests import FriendRequest
from ..models.messages import Message
from ..models.session_tokens import SessionToken
from ..errors import NotFoundError, ConflictError, ValidationError

logger = logging.getLogger(__name__)


async def load_user(session, user_id: int, role: str = 'User') -> User:
    """Fetch a user inside an open session or raise NotFoundError."""
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError(f'{role} not found with ID: {user_id}')
    return user


async def _find_by(session, column, value):
    q = await session.execute(select(User).where(column == value))
    return q.scalars().first()


def _blank(value) -> bool:
    return value is None or not str(value).strip()


async def create_user(payload):
    if _blank(payload.username) or _blank(payload.email) or _blank(payload.password):
        raise ValidationError('Username, email and credential are required')
    async with AsyncSessionLocal() as session:
        try:
            async with session.begin():
                if await _find_by(session, User.username, payload.username):
                    raise ConflictError('Username already exists')
                if await _find_by(session, User.email, payload.email):
                    raise ConflictError('Email already exists')
                user = User(
                    username=payload.username,
                    email=payload.email,
                    credential=payload.password,
                    status=UserStatus.OFFLINE.value,
                )
                session.add(user)
        except IntegrityError:
            # lost a race against a concurrent registration
            raise ConflictError('Username or email already exists')
        await session.refresh(user)
    logger.info(f'New user registered: {user.username}')
    return user


async def get_user_by_id(user_id: int):
    async with AsyncSessionLocal() as session:
        return await session.get(User, user_id)


async def get_user(user_id: int) -> User:
    async with AsyncSessionLocal() as session:
        return await load_user(session, user_id)


async def search_users(query: str):
    """Exact username, then exact email, then case-insensitive partial match.

    Returns ``(first_match, total_results)``.
    """
    if _blank(query):
        raise ValidationError('Search query cannot be empty')
    logger.info(f'Searching for users with query: {query}')
    async with AsyncSessionLocal() as session:
        user = await _find_by(session, User.username, query)
        if user is None:
            user = await _find_by(session, User.email, query)
        if user is not None:
            return user, 1
        needle = query.lower()
        q = await session.execute(
            select(User).where(or_(
                func.lower(User.username).contains(needle, autoescape=True),
                func.lower(User.email).contains(needle, autoescape=True),
            )).order_by(User.id.asc())
        )
        matches = q.scalars().all()
    if not matches:
        raise NotFoundError('No users found matching the search criteria')
    return matches[0], len(matches)


async def list_users(page: int | None = None, size: int | None = None):
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(User).order_by(User.id.asc()))
        users = q.scalars().all()
    if page is None or size is None:
        return users
    if page < 0 or size < 1:
        raise ValidationError('page must be >= 0 and size must be >= 1')
    start = page * size
    return users[start:start + size]


async def update_user(user_id: int, payload):
    async with AsyncSessionLocal() as session:
        try:
            async with session.begin():
                user = await load_user(session, user_id)
                if not _blank(payload.username):
                    existing = await _find_by(session, User.username, payload.username)
                    if existing and existing.id != user_id:
                        raise ConflictError('Username already taken')
                    user.username = payload.username
                if not _blank(payload.email):
                    existing = await _find_by(session, User.email, payload.email)
                    if existing and existing.id != user_id:
                        raise ConflictError('Email already taken')
                    user.email = payload.email
                if not _blank(payload.password):
                    user.credential = payload.password
        except IntegrityError:
            raise ConflictError('Username or email already taken')
        await session.refresh(user)
    logger.info(f'Updated profile for user ID: {user_id}')
    return user


async def delete_user(user_id: int):
    """Delete a user together with their messages, friend requests and sessions."""
    async with AsyncSessionLocal() as session:
        async with session.begin():
            user = await load_user(session, user_id)
            await session.execute(delete(Message).where(
                or_(Message.sender_id == user_id, Message.receiver_id == user_id)))
            await session.execute(delete(FriendRequest).where(
                or_(FriendRequest.sender_id == user_id, FriendRequest.receiver_id == user_id)))
            await session.execute(delete(SessionToken).where(SessionToken.user_id == user_id))
            await session.delete(user)
    logger.info(f'Deleted user account with ID: {user_id}')


def parse_status(value) -> UserStatus:
    if isinstance(value, UserStatus):
        return value
    try:
        return UserStatus(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f'Invalid status: {value}. Expected one of ONLINE, OFFLINE, AWAY')


async def set_user_status(user_id: int, status) -> User:
    new_status = parse_status(status)
    async with AsyncSessionLocal() as session:
        async with session.begin():
            user = await load_user(session, user_id)
            user.status = new_status.value
    logger.info(f'Updated status for user {user_id}: {new_status.value}')
    return user


async def reset_all_statuses() -> int:
    async with AsyncSessionLocal() as session:
        async with session.begin():
            res = await session.execute(update(User).values(status=UserStatus.OFFLINE.value))
    return res.rowcount
