"""
Friendship ledger.

One FriendRequest row per unordered pair of users carries the whole
relationship: PENDING -> ACCEPTED | REJECTED, and REJECTED -> PENDING again
when either side re-sends. "Friends" are never stored; they are derived from
ACCEPTED rows on every query.
"""
import enum
import logging
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..models import AsyncSessionLocal
from ..models.users import User, utcnow
from ..models.friend_requests import FriendRequest, FriendStatus
from ..errors import (
    NotFoundError,
    DuplicateRequestError,
    InvalidStateError,
    SelfRequestError,
)
from ..metrics import FRIEND_REQUESTS, FRIEND_REQUEST_TRANSITIONS
from .users import load_user

logger = logging.getLogger(__name__)


class SendOutcome(str, enum.Enum):
    CREATED = 'created'
    RESENT = 'resent'
    ALREADY_FRIENDS = 'already_friends'


OUTCOME_MESSAGES = {
    SendOutcome.CREATED: 'Friend request sent successfully',
    SendOutcome.RESENT: 'Friend request sent again',
    SendOutcome.ALREADY_FRIENDS: 'Already friends',
}


def ordered_pair(user_a: int, user_b: int):
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


async def send_friend_request(from_user: int, to_user: int):
    """Send, re-send or no-op a friend request. Returns ``(request, outcome)``."""
    if from_user == to_user:
        raise SelfRequestError('Cannot send friend request to yourself')
    logger.info(f'Sending friend request from user {from_user} to user {to_user}')
    try:
        fr, outcome = await _apply_send(from_user, to_user)
    except IntegrityError:
        # a concurrent send inserted the pair first; decide against its row
        logger.info(f'Concurrent friend request for pair {ordered_pair(from_user, to_user)}, retrying')
        fr, outcome = await _apply_send(from_user, to_user)
    FRIEND_REQUESTS.labels(outcome.value).inc()
    return fr, outcome


async def _apply_send(from_user: int, to_user: int):
    low, high = ordered_pair(from_user, to_user)
    async with AsyncSessionLocal() as session:
        async with session.begin():
            await load_user(session, from_user, 'Sender')
            await load_user(session, to_user, 'Recipient')
            q = await session.execute(
                select(FriendRequest)
                .where(FriendRequest.user_low == low, FriendRequest.user_high == high)
                .with_for_update()
            )
            fr = q.scalars().first()
            if fr is None:
                fr = FriendRequest(
                    sender_id=from_user,
                    receiver_id=to_user,
                    user_low=low,
                    user_high=high,
                    status=FriendStatus.PENDING.value,
                    created_at=utcnow(),
                )
                session.add(fr)
                outcome = SendOutcome.CREATED
            elif fr.status == FriendStatus.ACCEPTED.value:
                # accepted is sticky, never downgrade it
                outcome = SendOutcome.ALREADY_FRIENDS
            elif fr.status == FriendStatus.REJECTED.value:
                # same row, pointed at whoever asked this time
                fr.sender_id = from_user
                fr.receiver_id = to_user
                fr.status = FriendStatus.PENDING.value
                fr.created_at = utcnow()
                outcome = SendOutcome.RESENT
            else:
                raise DuplicateRequestError('Friend request already sent')
    return fr, outcome


async def _load_request(session, request_id: int) -> FriendRequest:
    q = await session.execute(
        select(FriendRequest).where(FriendRequest.id == request_id).with_for_update()
    )
    fr = q.scalars().first()
    if fr is None:
        raise NotFoundError(f'Friend request not found with ID: {request_id}')
    return fr


async def _resolve_request(request_id: int, status: FriendStatus) -> FriendRequest:
    async with AsyncSessionLocal() as session:
        async with session.begin():
            fr = await _load_request(session, request_id)
            if fr.status != FriendStatus.PENDING.value:
                raise InvalidStateError('Friend request is not pending')
            fr.status = status.value
            fr.created_at = utcnow()
    FRIEND_REQUEST_TRANSITIONS.labels(status.value).inc()
    return fr


async def accept_friend_request(request_id: int) -> FriendRequest:
    logger.info(f'Accepting friend request with ID: {request_id}')
    return await _resolve_request(request_id, FriendStatus.ACCEPTED)


async def reject_friend_request(request_id: int) -> FriendRequest:
    logger.info(f'Rejecting friend request with ID: {request_id}')
    return await _resolve_request(request_id, FriendStatus.REJECTED)


async def cancel_friend_request(request_id: int):
    logger.info(f'Cancelling friend request with ID: {request_id}')
    async with AsyncSessionLocal() as session:
        async with session.begin():
            fr = await _load_request(session, request_id)
            if fr.status != FriendStatus.PENDING.value:
                raise InvalidStateError('Friend request is not pending')
            await session.delete(fr)
    FRIEND_REQUEST_TRANSITIONS.labels('CANCELLED').inc()


async def get_friend_request(request_id: int):
    async with AsyncSessionLocal() as session:
        return await session.get(FriendRequest, request_id)


async def list_pending_requests(user_id: int):
    """Pending requests addressed to ``user_id``, newest first."""
    async with AsyncSessionLocal() as session:
        await load_user(session, user_id)
        q = await session.execute(
            select(FriendRequest)
            .where(
                FriendRequest.receiver_id == user_id,
                FriendRequest.status == FriendStatus.PENDING.value,
            )
            .order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc())
        )
        return q.scalars().all()


async def list_friends(user_id: int):
    """Counterparts of every ACCEPTED row touching ``user_id``.

    Fail-open: a counterpart that cannot be loaded is logged and skipped
    instead of failing the whole list, which hides dangling rows.
    """
    async with AsyncSessionLocal() as session:
        await load_user(session, user_id)
        q = await session.execute(
            select(FriendRequest)
            .where(
                or_(FriendRequest.sender_id == user_id, FriendRequest.receiver_id == user_id),
                FriendRequest.status == FriendStatus.ACCEPTED.value,
            )
            .order_by(FriendRequest.id.asc())
        )
        friends = []
        for fr in q.scalars().all():
            other_id = fr.receiver_id if fr.sender_id == user_id else fr.sender_id
            try:
                friend = await session.get(User, other_id)
            except SQLAlchemyError as e:
                logger.error(f'Error loading friend {other_id} of user {user_id}: {e}')
                continue
            if friend is None:
                logger.warning(f'Skipping friend request {fr.id}: user {other_id} does not exist')
                continue
            friends.append(friend)
    logger.info(f'Retrieved {len(friends)} friends for user ID: {user_id}')
    return friends


async def are_friends(user_a: int, user_b: int) -> bool:
    # fail-open: any lookup failure reads as "not friends"
    try:
        friends = await list_friends(user_a)
    except Exception as e:
        logger.warning(f'Error checking friendship between {user_a} and {user_b}: {e}')
        return False
    return any(friend.id == user_b for friend in friends)
