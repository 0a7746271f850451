import uuid

import pytest
from sqlalchemy import func, select

from app.models.friend_request import FriendRequest
from app.models.friendship import Friendship

pytestmark = pytest.mark.anyio


async def send_request(client, sender: dict, receiver: dict):
    return await client.post(
        "/add-friend",
        json={"senderId": sender["id"], "friendCode": receiver["friend_code"]},
    )


async def test_send_request_creates_one_pending_request(client, user_factory, db_session):
    a = await user_factory(client)
    b = await user_factory(client)

    r = await send_request(client, a, b)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["message"] == "Friend request sent successfully"
    assert data["request"]["sender_id"] == a["id"]
    assert data["request"]["receiver_id"] == b["id"]
    assert data["request"]["status"] == "pending"
    assert data["request"]["responded_at"] is None

    count = (await db_session.execute(select(func.count(FriendRequest.id)))).scalar_one()
    assert count == 1


async def test_cannot_add_yourself(client, user_factory):
    a = await user_factory(client)

    r = await send_request(client, a, a)
    assert r.status_code == 400
    assert r.json()["detail"] == "You cannot add yourself"


async def test_unknown_friend_code_is_not_found(client, user_factory):
    a = await user_factory(client)

    r = await client.post("/add-friend", json={"senderId": a["id"], "friendCode": "nosuchcode"})
    assert r.status_code == 404
    assert r.json()["detail"] == "User not found"


async def test_unknown_sender_is_not_found(client, user_factory):
    b = await user_factory(client)

    r = await client.post("/add-friend", json={"senderId": str(uuid.uuid4()), "friendCode": b["friend_code"]})
    assert r.status_code == 404


@pytest.mark.parametrize("extra", [{}, {"friendCode": None}, {"friendCode": ""}])
async def test_missing_friend_code_is_a_validation_error(client, user_factory, extra):
    a = await user_factory(client)

    r = await client.post("/add-friend", json={"senderId": a["id"], **extra})
    assert r.status_code == 400
    assert r.json()["detail"] == "Friend code is required"


async def test_malformed_sender_id_is_rejected(client, user_factory):
    b = await user_factory(client)

    r = await client.post("/add-friend", json={"senderId": "not-a-uuid", "friendCode": b["friend_code"]})
    assert r.status_code == 422


async def test_cannot_request_existing_friend(client, user_factory, friendship_factory):
    a = await user_factory(client)
    b = await user_factory(client)
    await friendship_factory(client, a, b)

    # either direction counts as already friends
    r = await send_request(client, a, b)
    assert r.status_code == 400
    assert r.json()["detail"] == "Already friends"

    r = await send_request(client, b, a)
    assert r.status_code == 400
    assert r.json()["detail"] == "Already friends"


async def test_duplicate_pending_request_is_rejected(client, user_factory, db_session):
    a = await user_factory(client)
    b = await user_factory(client)

    r = await send_request(client, a, b)
    assert r.status_code == 200, r.text

    r = await send_request(client, a, b)
    assert r.status_code == 400
    assert r.json()["detail"] == "A friend request between these users is already pending"

    r = await send_request(client, b, a)
    assert r.status_code == 400

    count = (await db_session.execute(select(func.count(FriendRequest.id)))).scalar_one()
    assert count == 1


async def test_can_request_again_after_rejection(client, user_factory):
    a = await user_factory(client)
    b = await user_factory(client)

    r = await send_request(client, a, b)
    request_id = r.json()["request"]["id"]
    r = await client.post(f"/requests/{request_id}/reject")
    assert r.status_code == 200, r.text

    r = await send_request(client, a, b)
    assert r.status_code == 200, r.text
    assert r.json()["request"]["id"] != request_id


async def test_received_and_sent_requests_include_all_statuses(client, user_factory):
    a = await user_factory(client)
    b = await user_factory(client)
    c = await user_factory(client)

    r = await send_request(client, a, b)
    to_b = r.json()["request"]["id"]
    r = await send_request(client, a, c)
    to_c = r.json()["request"]["id"]

    r = await client.post(f"/requests/{to_c}/reject")
    assert r.status_code == 200, r.text

    r = await client.get(f"/sent-requests/{a['id']}")
    assert r.status_code == 200, r.text
    sent = r.json()["sentRequests"]
    assert {s["id"] for s in sent} == {to_b, to_c}
    assert {s["status"] for s in sent} == {"pending", "rejected"}

    r = await client.get(f"/requests/{c['id']}")
    assert r.status_code == 200, r.text
    received = r.json()["requests"]
    assert [q["id"] for q in received] == [to_c]
    assert received[0]["status"] == "rejected"

    r = await client.get(f"/requests/{a['id']}")
    assert r.json()["requests"] == []


async def test_request_listings_filter_by_status(client, user_factory):
    a = await user_factory(client)
    b = await user_factory(client)
    c = await user_factory(client)

    r = await send_request(client, a, b)
    pending_id = r.json()["request"]["id"]
    r = await send_request(client, a, c)
    await client.post(f"/requests/{r.json()['request']['id']}/reject")

    r = await client.get(f"/sent-requests/{a['id']}", params={"status": "pending"})
    assert r.status_code == 200, r.text
    assert [s["id"] for s in r.json()["sentRequests"]] == [pending_id]

    r = await client.get(f"/sent-requests/{a['id']}", params={"status": "bogus"})
    assert r.status_code == 422


async def test_accept_creates_friendship(client, user_factory, db_session):
    a = await user_factory(client)
    b = await user_factory(client)

    r = await send_request(client, a, b)
    request_id = r.json()["request"]["id"]

    r = await client.post(f"/requests/{request_id}/accept")
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["message"] == "Friend request accepted"
    assert data["request"]["id"] == request_id
    assert data["request"]["status"] == "accepted"
    assert data["request"]["responded_at"] is not None

    count = (await db_session.execute(select(func.count(Friendship.id)))).scalar_one()
    assert count == 1


async def test_reject_creates_no_friendship(client, user_factory, db_session):
    a = await user_factory(client)
    b = await user_factory(client)

    r = await send_request(client, a, b)
    request_id = r.json()["request"]["id"]

    r = await client.post(f"/requests/{request_id}/reject")
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["message"] == "Friend request rejected"
    assert data["request"]["status"] == "rejected"

    count = (await db_session.execute(select(func.count(Friendship.id)))).scalar_one()
    assert count == 0

    r = await client.get(f"/friends/{a['id']}")
    assert r.json()["friends"] == []


@pytest.mark.parametrize("action", ["accept", "reject"])
async def test_unknown_request_is_not_found(client, action):
    r = await client.post(f"/requests/{uuid.uuid4()}/{action}")
    assert r.status_code == 404
    assert r.json()["detail"] == "Friend request not found"


@pytest.mark.parametrize(
    "first, second",
    [
        ("accept", "accept"),
        ("accept", "reject"),
        ("reject", "reject"),
        ("reject", "accept"),
    ],
)
async def test_terminal_requests_do_not_transition_again(client, user_factory, db_session, first, second):
    a = await user_factory(client)
    b = await user_factory(client)

    r = await send_request(client, a, b)
    request_id = r.json()["request"]["id"]

    r = await client.post(f"/requests/{request_id}/{first}")
    assert r.status_code == 200, r.text
    expected_status = r.json()["request"]["status"]

    r = await client.post(f"/requests/{request_id}/{second}")
    assert r.status_code == 409
    assert r.json()["detail"] == "Friend request is no longer pending"

    r = await client.get(f"/sent-requests/{a['id']}")
    assert [s["status"] for s in r.json()["sentRequests"]] == [expected_status]

    friendships = (await db_session.execute(select(func.count(Friendship.id)))).scalar_one()
    assert friendships == (1 if first == "accept" else 0)


async def test_friends_list_is_symmetric(client, user_factory, friendship_factory):
    a = await user_factory(client)
    b = await user_factory(client)
    friendship_id = await friendship_factory(client, a, b)

    r = await client.get(f"/friends/{a['id']}")
    assert r.status_code == 200, r.text
    assert r.json()["friends"] == [
        {"friendship_id": friendship_id, "id": b["id"], "username": b["username"], "profile_image": None}
    ]

    r = await client.get(f"/friends/{b['id']}")
    assert r.status_code == 200, r.text
    assert r.json()["friends"] == [
        {"friendship_id": friendship_id, "id": a["id"], "username": a["username"], "profile_image": None}
    ]


async def test_friends_list_covers_every_friendship(client, user_factory, friendship_factory):
    a = await user_factory(client)
    b = await user_factory(client)
    c = await user_factory(client)
    d = await user_factory(client)

    await friendship_factory(client, a, b)
    # c befriends a from the other side
    await friendship_factory(client, c, a)
    await friendship_factory(client, c, d)

    r = await client.get(f"/friends/{a['id']}")
    assert {f["id"] for f in r.json()["friends"]} == {b["id"], c["id"]}

    r = await client.get(f"/friends/{d['id']}")
    assert [f["id"] for f in r.json()["friends"]] == [c["id"]]


async def test_accepting_stale_reverse_request_does_not_duplicate_friendship(client, user_factory, db_session):
    a = await user_factory(client)
    b = await user_factory(client)

    r = await send_request(client, a, b)
    a_to_b = r.json()["request"]["id"]
    r = await client.post(f"/requests/{a_to_b}/accept")
    assert r.status_code == 200, r.text

    # a reverse request written straight to the table after they became friends
    low, high = sorted([uuid.UUID(a["id"]), uuid.UUID(b["id"])])
    b_to_a = FriendRequest(
        sender_id=uuid.UUID(b["id"]),
        receiver_id=uuid.UUID(a["id"]),
        pair_low_id=low,
        pair_high_id=high,
        status="pending",
    )
    db_session.add(b_to_a)
    await db_session.commit()
    b_to_a_id = str(b_to_a.id)

    r = await client.post(f"/requests/{b_to_a_id}/accept")
    assert r.status_code == 200, r.text

    count = (await db_session.execute(select(func.count(Friendship.id)))).scalar_one()
    assert count == 1


async def test_concurrent_duplicate_sends_leave_one_pending_request(client, user_factory, db_session, monkeypatch):
    from app.db.session import AsyncSessionLocal
    from app.services import errors
    from app.services import friends as friends_service

    a = await user_factory(client)
    b = await user_factory(client)
    a_id, b_id = uuid.UUID(a["id"]), uuid.UUID(b["id"])

    async with AsyncSessionLocal() as first, AsyncSessionLocal() as second:
        # both sessions see no pending request before either one writes
        assert await friends_service._has_pending_request(first, a_id, b_id) is False
        assert await friends_service._has_pending_request(second, b_id, a_id) is False

        async def _stale_check(*args, **kwargs):
            return False

        monkeypatch.setattr(friends_service, "_has_pending_request", _stale_check)

        await friends_service.send_friend_request(first, a_id, b["friend_code"])
        await first.commit()

        with pytest.raises(errors.RequestAlreadyPending):
            await friends_service.send_friend_request(second, b_id, a["friend_code"])
        await second.rollback()

    pending = (
        await db_session.execute(
            select(func.count(FriendRequest.id)).where(FriendRequest.status == "pending")
        )
    ).scalar_one()
    assert pending == 1


async def test_friendship_pair_must_be_stored_in_order(client, user_factory, db_session):
    from sqlalchemy.exc import IntegrityError

    a = await user_factory(client)
    b = await user_factory(client)
    low, high = sorted([uuid.UUID(a["id"]), uuid.UUID(b["id"])])

    db_session.add(Friendship(user1_id=high, user2_id=low))
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()

    db_session.add(Friendship(user1_id=low, user2_id=low))
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()

    count = (await db_session.execute(select(func.count(Friendship.id)))).scalar_one()
    assert count == 0



async def test_friends_for_unknown_user_is_empty(client):
    r = await client.get(f"/friends/{uuid.uuid4()}")
    assert r.status_code == 200
    assert r.json() == {"friends": []}


async def test_failed_friendship_insert_leaves_request_pending(client, user_factory, db_session, monkeypatch):
    from app.services import friends as friends_service

    a = await user_factory(client)
    b = await user_factory(client)

    r = await send_request(client, a, b)
    request_id = r.json()["request"]["id"]

    # the pair already exists, but the service is told otherwise so its insert collides
    user1_id, user2_id = sorted([uuid.UUID(a["id"]), uuid.UUID(b["id"])])
    db_session.add(Friendship(user1_id=user1_id, user2_id=user2_id))
    await db_session.commit()

    async def _never_friends(*args, **kwargs):
        return False

    monkeypatch.setattr(friends_service, "_are_friends", _never_friends)

    r = await client.post(f"/requests/{request_id}/accept")
    assert r.status_code == 500
    assert "unique" in r.json()["detail"].lower()

    await db_session.rollback()
    status = (
        await db_session.execute(select(FriendRequest.status).where(FriendRequest.id == uuid.UUID(request_id)))
    ).scalar_one()
    assert status == "pending"
