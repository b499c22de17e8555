import asyncio

import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from msgapp import crud
from msgapp.crud import SendOutcome
from msgapp.errors import (
    NotFoundError,
    DuplicateRequestError,
    InvalidStateError,
    SelfRequestError,
)
from msgapp.models import AsyncSessionLocal
from msgapp.models.friend_requests import FriendRequest, FriendStatus
from msgapp.models.users import User


@pytest.mark.asyncio
async def test_send_creates_pending_request(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    fr, outcome = await crud.send_friend_request(alice.id, bob.id)
    assert outcome == SendOutcome.CREATED
    assert fr.status == FriendStatus.PENDING.value
    assert (fr.sender_id, fr.receiver_id) == (alice.id, bob.id)


@pytest.mark.asyncio
async def test_second_send_while_pending_is_duplicate(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    await crud.send_friend_request(alice.id, bob.id)
    with pytest.raises(DuplicateRequestError):
        await crud.send_friend_request(alice.id, bob.id)
    # the reverse direction hits the same pair row
    with pytest.raises(DuplicateRequestError):
        await crud.send_friend_request(bob.id, alice.id)


@pytest.mark.asyncio
async def test_self_request_always_rejected(make_user):
    alice = await make_user('alice')
    with pytest.raises(SelfRequestError):
        await crud.send_friend_request(alice.id, alice.id)
    # even for an id that does not exist
    with pytest.raises(SelfRequestError):
        await crud.send_friend_request(999, 999)


@pytest.mark.asyncio
async def test_send_to_unknown_user(make_user):
    alice = await make_user('alice')
    with pytest.raises(NotFoundError):
        await crud.send_friend_request(alice.id, 999)
    with pytest.raises(NotFoundError):
        await crud.send_friend_request(999, alice.id)


@pytest.mark.asyncio
async def test_accept_makes_friendship_symmetric(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    fr, _ = await crud.send_friend_request(alice.id, bob.id)
    accepted = await crud.accept_friend_request(fr.id)
    assert accepted.status == FriendStatus.ACCEPTED.value

    assert await crud.are_friends(alice.id, bob.id)
    assert await crud.are_friends(bob.id, alice.id)
    assert [u.id for u in await crud.list_friends(alice.id)] == [bob.id]
    assert [u.id for u in await crud.list_friends(bob.id)] == [alice.id]


@pytest.mark.asyncio
async def test_send_on_accepted_pair_is_noop(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    fr, _ = await crud.send_friend_request(alice.id, bob.id)
    await crud.accept_friend_request(fr.id)

    again, outcome = await crud.send_friend_request(bob.id, alice.id)
    assert outcome == SendOutcome.ALREADY_FRIENDS
    assert again.id == fr.id
    assert again.status == FriendStatus.ACCEPTED.value


@pytest.mark.asyncio
async def test_reject_then_resend_reuses_row(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    fr, _ = await crud.send_friend_request(alice.id, bob.id)
    rejected = await crud.reject_friend_request(fr.id)
    assert rejected.status == FriendStatus.REJECTED.value
    assert not await crud.are_friends(alice.id, bob.id)

    again, outcome = await crud.send_friend_request(alice.id, bob.id)
    assert outcome == SendOutcome.RESENT
    assert again.id == fr.id
    assert again.status == FriendStatus.PENDING.value
    assert again.created_at != fr.created_at


@pytest.mark.asyncio
async def test_resend_from_rejecting_side_redirects_row(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    fr, _ = await crud.send_friend_request(alice.id, bob.id)
    await crud.reject_friend_request(fr.id)

    again, _ = await crud.send_friend_request(bob.id, alice.id)
    assert again.id == fr.id
    assert (again.sender_id, again.receiver_id) == (bob.id, alice.id)
    assert [r.id for r in await crud.list_pending_requests(alice.id)] == [fr.id]
    assert await crud.list_pending_requests(bob.id) == []


@pytest.mark.asyncio
async def test_accept_or_reject_twice_is_invalid_state(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    fr, _ = await crud.send_friend_request(alice.id, bob.id)
    await crud.accept_friend_request(fr.id)
    with pytest.raises(InvalidStateError):
        await crud.accept_friend_request(fr.id)
    with pytest.raises(InvalidStateError):
        await crud.reject_friend_request(fr.id)


@pytest.mark.asyncio
async def test_transitions_on_unknown_request(make_user):
    with pytest.raises(NotFoundError):
        await crud.accept_friend_request(12345)
    with pytest.raises(NotFoundError):
        await crud.reject_friend_request(12345)
    with pytest.raises(NotFoundError):
        await crud.cancel_friend_request(12345)


@pytest.mark.asyncio
async def test_cancel_non_pending_is_invalid_state(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    fr, _ = await crud.send_friend_request(alice.id, bob.id)
    await crud.reject_friend_request(fr.id)
    with pytest.raises(InvalidStateError):
        await crud.cancel_friend_request(fr.id)


@pytest.mark.asyncio
async def test_cancel_pending_deletes_row(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    fr, _ = await crud.send_friend_request(alice.id, bob.id)
    await crud.cancel_friend_request(fr.id)
    assert await crud.get_friend_request(fr.id) is None

    fresh, outcome = await crud.send_friend_request(alice.id, bob.id)
    assert outcome == SendOutcome.CREATED
    assert fresh.id != fr.id


@pytest.mark.asyncio
async def test_cancelled_id_is_not_reused_by_another_pair(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    carol = await make_user('carol')
    dave = await make_user('dave')
    fr, _ = await crud.send_friend_request(alice.id, bob.id)
    await crud.cancel_friend_request(fr.id)

    other, _ = await crud.send_friend_request(carol.id, dave.id)
    assert other.id != fr.id
    # a stale id must not act on an unrelated pair
    with pytest.raises(NotFoundError):
        await crud.accept_friend_request(fr.id)
    assert not await crud.are_friends(carol.id, dave.id)
    assert (await crud.get_friend_request(other.id)).status == FriendStatus.PENDING.value


@pytest.mark.asyncio
async def test_pending_list_only_holds_incoming_pending(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    carol = await make_user('carol')
    from_alice, _ = await crud.send_friend_request(alice.id, bob.id)
    from_carol, _ = await crud.send_friend_request(carol.id, bob.id)
    await crud.accept_friend_request(from_carol.id)

    pending = await crud.list_pending_requests(bob.id)
    assert [r.id for r in pending] == [from_alice.id]
    assert await crud.list_pending_requests(alice.id) == []
    with pytest.raises(NotFoundError):
        await crud.list_pending_requests(999)


@pytest.mark.asyncio
async def test_list_friends_unknown_user(make_user):
    with pytest.raises(NotFoundError):
        await crud.list_friends(999)


@pytest.mark.asyncio
async def test_are_friends_fails_open_for_unknown_user(make_user):
    alice = await make_user('alice')
    assert await crud.are_friends(999, alice.id) is False
    assert await crud.are_friends(alice.id, 999) is False



@pytest.mark.asyncio
async def test_concurrent_sends_leave_one_row(make_user):
    alice = await make_user('alice')
    bob = await make_user('bob')
    calls = [crud.send_friend_request(alice.id, bob.id) for _ in range(4)]
    calls += [crud.send_friend_request(bob.id, alice.id) for _ in range(4)]
    results = await asyncio.gather(*calls, return_exceptions=True)

    created = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert [outcome for _, outcome in created] == [SendOutcome.CREATED]
    assert all(isinstance(e, DuplicateRequestError) for e in failures), failures

    async with AsyncSessionLocal() as session:
        rows = await session.scalar(select(func.count()).select_from(FriendRequest))
    assert rows == 1


@pytest.mark.asyncio
async def test_list_friends_skips_unloadable_counterparts(make_user, monkeypatch):
    # fail-open read path: a counterpart that is missing or fails to load is skipped, not raised
    alice = await make_user('alice')
    bob = await make_user('bob')
    carol = await make_user('carol')
    dave = await make_user('dave')
    for other in (bob, carol, dave):
        fr, _ = await crud.send_friend_request(alice.id, other.id)
        await crud.accept_friend_request(fr.id)

    original_get = AsyncSession.get

    async def flaky_get(self, entity, ident, *args, **kwargs):
        if entity is User and ident == bob.id:
            return None
        if entity is User and ident == carol.id:
            raise OperationalError('SELECT users', {}, Exception('connection reset'))
        return await original_get(self, entity, ident, *args, **kwargs)

    monkeypatch.setattr(AsyncSession, 'get', flaky_get)

    friends = await crud.list_friends(alice.id)
    assert [u.id for u in friends] == [dave.id]
    assert await crud.are_friends(alice.id, bob.id) is False
    assert await crud.are_friends(alice.id, dave.id) is True
