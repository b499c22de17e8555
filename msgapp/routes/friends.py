from typing import List, Optional
from fastapi import APIRouter, Depends
from ..schemas.friendships import (
    FriendRequestIn,
    FriendRequestOut,
    FriendRequestActionOut,
    AreFriendsOut,
)
from ..schemas.users import UserOut
from ..schemas.common import ActionOkOut
from ..crud import (
    OUTCOME_MESSAGES,
    send_friend_request,
    accept_friend_request,
    reject_friend_request,
    cancel_friend_request,
    list_pending_requests,
    list_friends,
    are_friends,
)
from ..auth import require_session

router = APIRouter()


@router.post('/requests', response_model=FriendRequestActionOut)
async def send_request(payload: FriendRequestIn, session: dict = Depends(require_session)):
    fr, outcome = await send_friend_request(session['id'], payload.receiver_id)
    return {
        'message': OUTCOME_MESSAGES[outcome],
        'outcome': outcome.value,
        'request': FriendRequestOut.model_validate(fr),
    }


@router.post('/requests/{request_id}/accept', response_model=FriendRequestActionOut)
async def accept_request(request_id: int, session: dict = Depends(require_session)):
    fr = await accept_friend_request(request_id)
    return {'message': 'Friend request accepted', 'request': FriendRequestOut.model_validate(fr)}


@router.post('/requests/{request_id}/reject', response_model=FriendRequestActionOut)
async def reject_request(request_id: int, session: dict = Depends(require_session)):
    fr = await reject_friend_request(request_id)
    return {'message': 'Friend request rejected', 'request': FriendRequestOut.model_validate(fr)}


@router.delete('/requests/{request_id}', response_model=ActionOkOut)
async def cancel_request(request_id: int, session: dict = Depends(require_session)):
    await cancel_friend_request(request_id)
    return {'ok': True, 'message': 'Friend request cancelled'}


@router.get('/requests', response_model=List[FriendRequestOut])
async def pending_requests(user_id: Optional[int] = None, session: dict = Depends(require_session)):
    return await list_pending_requests(user_id if user_id is not None else session['id'])


@router.get('/check', response_model=AreFriendsOut)
async def check_friends(user_id: int, other_id: int, session: dict = Depends(require_session)):
    return {'friends': await are_friends(user_id, other_id)}


@router.get('', response_model=List[UserOut])
async def friends(user_id: Optional[int] = None, session: dict = Depends(require_session)):
    return await list_friends(user_id if user_id is not None else session['id'])
