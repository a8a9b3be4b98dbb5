"""Room Routes — verifies the HTTP surface: payload shapes and error status mapping.

Invariants:
    - POST /rooms returns 201 and the only response carrying the secret
    - Bodies accept camelCase and snake_case keys
    - Domain errors map to 400/403/404/409/412 with the structured envelope
    - Owner leave answers roomDeleted=true and the room is gone afterwards
"""

import pytest

from giftroom.config import Settings, get_settings
from giftroom.main import app


@pytest.fixture
async def users(seed):
    alice = await seed.user("Alice")
    bob = await seed.user("Bob")
    return {
        "alice": alice, "bob": bob,
        "alice_letter": await seed.letter(alice, "Socks"),
        "bob_letter": await seed.letter(bob, "Books"),
    }


@pytest.fixture
async def room_id(client, users):
    res = await client.post("/api/v1/rooms", json={
        "name": "Office", "ownerId": users["alice"], "secret": "mistletoe",
    })
    assert res.status_code == 201
    return res.json()["room"]["id"]


async def _ready_pair(client, room_id, users):
    await client.post("/api/v1/rooms/join", json={
        "roomId": room_id, "secret": "mistletoe", "userId": users["bob"],
    })
    for who in ("alice", "bob"):
        await client.post(f"/api/v1/rooms/{room_id}/select-letter", json={
            "userId": users[who], "letterId": users[f"{who}_letter"],
        })
        await client.post(
            f"/api/v1/rooms/{room_id}/toggle-ready", json={"userId": users[who]},
        )


async def test_create_room_returns_secret(client, users):
    res = await client.post("/api/v1/rooms", json={
        "name": "  Family  ", "owner_id": users["alice"], "secret": "holly",
    })
    assert res.status_code == 201
    room = res.json()["room"]
    assert room["name"] == "Family"
    assert room["secret"] == "holly"
    assert room["ownerName"] == "Alice"


async def test_create_room_validation_is_400(client, users):
    res = await client.post("/api/v1/rooms", json={
        "name": "   ", "ownerId": users["alice"], "secret": "x",
    })
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"

    res = await client.post("/api/v1/rooms", json={"name": "Room"})
    assert res.status_code == 400


async def test_snapshot_hides_secret_and_orders_viewer_first(client, users, room_id):
    await client.post("/api/v1/rooms/join", json={
        "roomId": room_id, "secret": "mistletoe", "userId": users["bob"],
    })
    res = await client.get(f"/api/v1/rooms/{room_id}", params={"userId": users["bob"]})
    assert res.status_code == 200
    body = res.json()
    assert "secret" not in body["room"]
    assert [p["userId"] for p in body["participants"]] == [users["bob"], users["alice"]]
    assert body["participants"][0]["isViewer"] is True
    assert "lastUpdated" in body


async def test_join_wrong_secret_is_404(client, users, room_id):
    res = await client.post("/api/v1/rooms/join", json={
        "roomId": room_id, "secret": "wrong", "userId": users["bob"],
    })
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_repeat_join_reports_joined_false(client, users, room_id):
    body = {"roomId": room_id, "secret": "mistletoe", "userId": users["bob"]}
    first = (await client.post("/api/v1/rooms/join", json=body)).json()
    second = (await client.post("/api/v1/rooms/join", json=body)).json()
    assert (first["joined"], second["joined"]) == (True, False)
    assert "secret" not in second["room"]


async def test_list_rooms(client, users, room_id):
    res = await client.get("/api/v1/rooms", params={"userId": users["bob"]})
    [room] = res.json()["rooms"]
    assert room["id"] == room_id
    assert room["participantCount"] == 1
    assert room["isJoined"] is False


async def test_toggle_ready_without_letter_is_412(client, users, room_id):
    res = await client.post(
        f"/api/v1/rooms/{room_id}/toggle-ready", json={"userId": users["alice"]},
    )
    assert res.status_code == 412
    assert res.json()["error"]["message"] == "Select a letter first"


async def test_toggle_ready_response_shape(client, users, room_id):
    await client.post(f"/api/v1/rooms/{room_id}/select-letter", json={
        "userId": users["alice"], "letterId": users["alice_letter"],
    })
    res = await client.post(
        f"/api/v1/rooms/{room_id}/toggle-ready", json={"userId": users["alice"]},
    )
    body = res.json()
    assert body["isReady"] is True
    assert body["readyCount"] == 1
    assert body["totalParticipants"] == 1
    assert body["room"]["id"] == room_id


async def test_select_foreign_letter_is_409(client, users, room_id):
    res = await client.post(f"/api/v1/rooms/{room_id}/select-letter", json={
        "userId": users["alice"], "letterId": users["bob_letter"],
    })
    assert res.status_code == 409


async def test_draw_flow(client, users, room_id):
    await _ready_pair(client, room_id, users)

    res = await client.post(
        f"/api/v1/rooms/{room_id}/draw", json={"userId": users["bob"]},
    )
    assert res.status_code == 403

    res = await client.post(
        f"/api/v1/rooms/{room_id}/draw", json={"userId": users["alice"]},
    )
    assert res.status_code == 200
    pairs = {(r["giverId"], r["receiverId"]) for r in res.json()["results"]}
    assert pairs == {(users["alice"], users["bob"]), (users["bob"], users["alice"])}

    res = await client.get(
        f"/api/v1/rooms/{room_id}/draw-result", params={"userId": users["bob"]},
    )
    body = res.json()
    assert body["hasResult"] is True
    assert body["result"]["receiverName"] == "Alice"
    assert body["result"]["letterHeading"] == "Socks"

    res = await client.post(
        f"/api/v1/rooms/{room_id}/draw", json={"userId": users["alice"]},
    )
    assert res.status_code == 409


async def test_draw_result_before_draw(client, users, room_id):
    res = await client.get(
        f"/api/v1/rooms/{room_id}/draw-result", params={"userId": users["alice"]},
    )
    assert res.json() == {"hasResult": False}


async def test_draw_not_ready_is_412_with_offenders(client, users, room_id):
    await client.post("/api/v1/rooms/join", json={
        "roomId": room_id, "secret": "mistletoe", "userId": users["bob"],
    })
    res = await client.post(
        f"/api/v1/rooms/{room_id}/draw", json={"userId": users["alice"]},
    )
    assert res.status_code == 412
    assert res.json()["error"]["offenders"] == ["Alice", "Bob"]


async def test_redraw_policy_from_settings(client, users, room_id):
    app.dependency_overrides[get_settings] = lambda: Settings(redraw_policy="replace")
    await _ready_pair(client, room_id, users)
    await client.post(f"/api/v1/rooms/{room_id}/draw", json={"userId": users["alice"]})

    res = await client.post(
        f"/api/v1/rooms/{room_id}/draw", json={"userId": users["alice"]},
    )
    # replace is allowed, but the drawn letters are consumed
    assert res.status_code == 412


async def test_owner_leave_deletes_room(client, users, room_id):
    """Scenario E over HTTP."""
    res = await client.post("/api/v1/rooms/leave", json={
        "roomId": room_id, "userId": users["alice"],
    })
    assert res.json() == {"roomDeleted": True}
    res = await client.get(f"/api/v1/rooms/{room_id}")
    assert res.status_code == 404


async def test_delete_room_requires_owner(client, users, room_id):
    res = await client.request(
        "DELETE", f"/api/v1/rooms/{room_id}", json={"userId": users["bob"]},
    )
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "FORBIDDEN"

    res = await client.request(
        "DELETE", f"/api/v1/rooms/{room_id}", json={"userId": users["alice"]},
    )
    assert res.json() == {"ok": True}
    assert (await client.get(f"/api/v1/rooms/{room_id}")).status_code == 404
