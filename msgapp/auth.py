"""
Session guard.

Login issues an opaque token and stores only its hash. Every protected route
resolves the token once, through ``require_session``, into
``{'id', 'username', 'token'}``; nothing below the routes sees the token.
Sessions do not expire server-side, they end on logout.
"""
import os
import secrets
import hashlib
import logging
from fastapi import Request
from sqlalchemy import select

from .models import AsyncSessionLocal
from .models.users import User, UserStatus, utcnow
from .models.session_tokens import SessionToken
from .errors import InvalidCredentialsError, UnauthorizedError
from .metrics import LOGINS
from .crud.users import get_user_by_id

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = os.getenv('SESSION_COOKIE_NAME', 'msgapp_session')


def generate_session_token() -> str:
    # 384-bit random token, URL-safe
    return secrets.token_urlsafe(48)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


async def login(username: str, password: str):
    """Check credentials, mark the user ONLINE and open a session.

    ``username`` may also be the account email. Returns ``(token, user)``.
    """
    async with AsyncSessionLocal() as session:
        async with session.begin():
            q = await session.execute(select(User).where(User.username == username))
            user = q.scalars().first()
            if user is None:
                q = await session.execute(select(User).where(User.email == username))
                user = q.scalars().first()
            # plain comparison, credentials are opaque strings
            if user is None or user.credential != password:
                LOGINS.labels('failure').inc()
                logger.warning(f'Failed login attempt for username: {username}')
                raise InvalidCredentialsError('Invalid username or password')
            user.status = UserStatus.ONLINE.value
            token = generate_session_token()
            session.add(SessionToken(
                user_id=user.id,
                username=user.username,
                token_hash=hash_token(token),
                created_at=utcnow(),
            ))
    LOGINS.labels('success').inc()
    logger.info(f'User {user.username} logged in successfully')
    return token, user


async def resolve_session(token: str | None):
    if not token:
        return None
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(SessionToken).where(
            SessionToken.token_hash == hash_token(token),
            SessionToken.revoked_at.is_(None),
        ))
        st = q.scalars().first()
        if not st:
            return None
        return {'id': st.user_id, 'username': st.username, 'token': token}


async def logout(token: str) -> bool:
    """Revoke the session and mark its user OFFLINE."""
    async with AsyncSessionLocal() as session:
        async with session.begin():
            q = await session.execute(select(SessionToken).where(
                SessionToken.token_hash == hash_token(token),
                SessionToken.revoked_at.is_(None),
            ).with_for_update())
            st = q.scalars().first()
            if not st:
                return False
            st.revoked_at = utcnow()
            user = await session.get(User, st.user_id)
            if user is not None:
                user.status = UserStatus.OFFLINE.value
    logger.info(f'User {st.username} logged out')
    return True


async def current_user(token: str | None):
    info = await resolve_session(token)
    if info is None:
        return None
    return await get_user_by_id(info['id'])


def extract_token(request: Request) -> str | None:
    scheme, _, value = request.headers.get('Authorization', '').partition(' ')
    if scheme.lower() == 'bearer' and value.strip():
        return value.strip()
    return request.cookies.get(SESSION_COOKIE_NAME)


async def require_session(request: Request) -> dict:
    info = await resolve_session(extract_token(request))
    if info is None:
        raise UnauthorizedError('Authentication required')
    return info
