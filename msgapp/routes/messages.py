from typing import List, Optional
from fastapi import APIRouter, Depends
from ..schemas.messages import MessageIn, MessageOut
from ..crud import send_message, list_conversation, list_inbox
from ..auth import require_session

router = APIRouter()


@router.post('', response_model=MessageOut, status_code=201)
async def send(payload: MessageIn, session: dict = Depends(require_session)):
    return await send_message(session['id'], payload.receiver_id, payload.text)


@router.get('/inbox', response_model=List[MessageOut])
async def inbox(user_id: Optional[int] = None, session: dict = Depends(require_session)):
    return await list_inbox(user_id if user_id is not None else session['id'])


@router.get('/with/{peer_id}', response_model=List[MessageOut])
async def dialog(peer_id: int, session: dict = Depends(require_session)):
    return await list_conversation(session['id'], peer_id)


@router.get('/{user_id1}/{user_id2}', response_model=List[MessageOut])
async def conversation(user_id1: int, user_id2: int, session: dict = Depends(require_session)):
    return await list_conversation(user_id1, user_id2)
