import logging
from sqlalchemy import select, or_, and_

from ..models import AsyncSessionLocal
from ..models.users import utcnow
from ..models.messages import Message
from ..errors import ValidationError
from ..metrics import MESSAGES_SENT
from .users import load_user

logger = logging.getLogger(__name__)


async def send_message(sender_id: int, receiver_id: int, text: str) -> Message:
    if text is None or not text.strip():
        raise ValidationError('Message content cannot be empty')
    logger.info(f'Sending message from user {sender_id} to user {receiver_id}')
    async with AsyncSessionLocal() as session:
        async with session.begin():
            await load_user(session, sender_id, 'Sender')
            await load_user(session, receiver_id, 'Recipient')
            # NOTE: friendship is deliberately not required to send a message
            m = Message(
                sender_id=sender_id,
                receiver_id=receiver_id,
                text=text,
                is_read=False,
                created_at=utcnow(),
            )
            session.add(m)
    MESSAGES_SENT.inc()
    return m


async def list_conversation(user_id: int, peer_id: int):
    async with AsyncSessionLocal() as session:
        await load_user(session, user_id)
        await load_user(session, peer_id)
        q = select(Message).where(or_(
            and_(Message.sender_id == user_id, Message.receiver_id == peer_id),
            and_(Message.sender_id == peer_id, Message.receiver_id == user_id),
        )).order_by(Message.created_at.asc(), Message.id.asc())
        res = await session.execute(q)
        return res.scalars().all()


async def list_inbox(user_id: int):
    """Every message the user sent or received, oldest first, all peers interleaved."""
    async with AsyncSessionLocal() as session:
        await load_user(session, user_id)
        q = select(Message).where(
            or_(Message.sender_id == user_id, Message.receiver_id == user_id)
        ).order_by(Message.created_at.asc(), Message.id.asc())
        res = await session.execute(q)
        return res.scalars().all()
