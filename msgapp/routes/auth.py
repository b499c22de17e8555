from fastapi import APIRouter, Depends, Request, Response
from ..schemas.users import RegisterIn, LoginIn, LoginOut, UserOut
from ..schemas.common import ActionOkOut
from ..crud import create_user
from ..auth import (
    SESSION_COOKIE_NAME,
    login as open_session,
    logout as close_session,
    current_user,
    extract_token,
    require_session,
)
from ..errors import UnauthorizedError

router = APIRouter()


@router.post('/register', response_model=UserOut, status_code=201)
async def register(payload: RegisterIn):
    return await create_user(payload)


@router.post('/login', response_model=LoginOut)
async def login(payload: LoginIn, response: Response):
    token, user = await open_session(payload.username, payload.password)
    response.set_cookie(SESSION_COOKIE_NAME, token, httponly=True, samesite='lax')
    return {'token': token, 'user': user}


@router.post('/logout', response_model=ActionOkOut)
async def logout(response: Response, session: dict = Depends(require_session)):
    await close_session(session['token'])
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {'ok': True, 'message': 'Logout successful'}


@router.get('/me', response_model=UserOut)
async def me(request: Request):
    user = await current_user(extract_token(request))
    if user is None:
        raise UnauthorizedError('No authenticated user found')
    return user
