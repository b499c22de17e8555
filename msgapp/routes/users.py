from typing import List, Optional
from fastapi import APIRouter, Depends
from ..schemas.users import (
    UserOut,
    UserUpdateIn,
    UserSearchOut,
    UserStatusIn,
    UserStatusOut,
)
from ..schemas.common import ActionOkOut
from ..crud import (
    get_user,
    search_users,
    list_users,
    update_user,
    delete_user,
    set_user_status,
)
from ..auth import require_session

router = APIRouter(dependencies=[Depends(require_session)])


def _status_out(user) -> dict:
    return {'user_id': user.id, 'username': user.username, 'status': user.status}


@router.get('', response_model=List[UserOut])
async def all_users(page: Optional[int] = None, size: Optional[int] = None):
    return await list_users(page, size)


@router.get('/search', response_model=UserSearchOut)
async def search(q: str):
    user, total = await search_users(q)
    return {'user': user, 'total_results': total}


@router.get('/statuses', response_model=List[UserStatusOut])
async def all_statuses():
    return [_status_out(u) for u in await list_users()]


@router.get('/{user_id}', response_model=UserOut)
async def get_user_profile(user_id: int):
    return await get_user(user_id)


@router.put('/{user_id}', response_model=UserOut)
async def update_user_profile(user_id: int, payload: UserUpdateIn):
    return await update_user(user_id, payload)


@router.delete('/{user_id}', response_model=ActionOkOut)
async def delete_account(user_id: int):
    await delete_user(user_id)
    return {'ok': True, 'message': 'Account deleted successfully'}


@router.get('/{user_id}/status', response_model=UserStatusOut)
async def get_status(user_id: int):
    return _status_out(await get_user(user_id))


@router.put('/{user_id}/status', response_model=UserStatusOut)
async def update_status(user_id: int, payload: UserStatusIn):
    return _status_out(await set_user_status(user_id, payload.status))
