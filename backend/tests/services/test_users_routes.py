"""User Routes — verifies available letters and the received-assignment history."""


async def test_available_letters_exclude_used(client, seed, make_coordinator):
    alice = await seed.user("Alice")
    bob = await seed.user("Bob")
    socks = await seed.letter(alice, "Socks")
    scarf = await seed.letter(alice, "Scarf")
    books = await seed.letter(bob, "Books")

    room = await make_coordinator().create_room("Office", alice, "pw")
    await make_coordinator().join_room(room.id, "pw", bob)
    for uid, letter in ((alice, socks), (bob, books)):
        await make_coordinator().select_letter(room.id, uid, letter)
        await make_coordinator().toggle_ready(room.id, uid)
    await make_coordinator().start_draw(room.id, alice)

    res = await client.get(f"/api/v1/users/{alice}/letters")
    assert [letter["id"] for letter in res.json()["letters"]] == [scarf]

    res = await client.get(f"/api/v1/users/{alice}/santa-letters")
    [entry] = res.json()["letters"]
    assert entry["roomName"] == "Office"
    assert entry["receiverName"] == "Bob"
    assert entry["letterHeading"] == "Books"
    assert entry["letterMessage"] == "Dear Santa: Books"


async def test_santa_letters_empty_for_new_user(client, seed):
    uid = await seed.user("Dana")
    res = await client.get(f"/api/v1/users/{uid}/santa-letters")
    assert res.json() == {"letters": []}
