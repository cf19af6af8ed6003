"""Representatives Routes — verifies CRUD, plan limits, ordering and the donor spokesperson.

Invariants:
    - List is priority ascending; new entries go last
    - The free plan allows two representatives (403 LIMIT_EXCEEDED on the third)
    - Only one representative can be donor spokesperson
    - Other users' representatives are invisible (404)
"""

from tests.services.factories import OTHER_CURP, register


def _rep(name: str, **extra) -> dict:
    return {"name": name, "phone": "55 1111 2222", "relation": "Hermano", **extra}


async def _create(client, headers, name, **extra):
    res = await client.post(
        "/api/v1/representatives", headers=headers, json=_rep(name, **extra),
    )
    assert res.status_code == 201, res.text
    return res.json()


async def test_create_assigns_next_priority(client, auth_user):
    first = await _create(client, auth_user["headers"], "Luis")
    second = await _create(client, auth_user["headers"], "Maria")
    assert first["priority"] == 1
    assert second["priority"] == 2

    res = await client.get("/api/v1/representatives", headers=auth_user["headers"])
    assert [r["name"] for r in res.json()] == ["Luis", "Maria"]


async def test_free_plan_limit(client, auth_user):
    await _create(client, auth_user["headers"], "Luis")
    await _create(client, auth_user["headers"], "Maria")
    res = await client.post(
        "/api/v1/representatives", headers=auth_user["headers"], json=_rep("Pedro"),
    )
    assert res.status_code == 403
    error = res.json()["error"]
    assert error["code"] == "LIMIT_EXCEEDED"
    assert error["context"]["details"] == {
        "limit_key": "representatives_limit", "limit": 2, "current": 2,
    }


async def test_premium_plan_raises_limit(client, premium_user):
    for name in ("Luis", "Maria", "Pedro"):
        await _create(client, premium_user["headers"], name)
    res = await client.get("/api/v1/representatives", headers=premium_user["headers"])
    assert len(res.json()) == 3


async def test_invalid_phone_rejected(client, auth_user):
    res = await client.post(
        "/api/v1/representatives",
        headers=auth_user["headers"],
        json=_rep("Luis", phone="abc"),
    )
    assert res.status_code == 400


async def test_update_and_delete(client, auth_user):
    rep = await _create(client, auth_user["headers"], "Luis", email="luis@example.mx")
    res = await client.put(
        f"/api/v1/representatives/{rep['id']}",
        headers=auth_user["headers"],
        json={"relation": "Padre", "email": None},
    )
    assert res.status_code == 200
    assert res.json()["relation"] == "Padre"
    assert res.json()["email"] is None

    deleted = await client.delete(
        f"/api/v1/representatives/{rep['id']}", headers=auth_user["headers"],
    )
    assert deleted.status_code == 204
    missing = await client.get(
        f"/api/v1/representatives/{rep['id']}", headers=auth_user["headers"],
    )
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "REPRESENTATIVE_NOT_FOUND"


async def test_reorder(client, premium_user):
    a = await _create(client, premium_user["headers"], "Luis")
    b = await _create(client, premium_user["headers"], "Maria")
    c = await _create(client, premium_user["headers"], "Pedro")
    res = await client.put(
        "/api/v1/representatives/reorder",
        headers=premium_user["headers"],
        json={"ordered_ids": [c["id"], a["id"], b["id"]]},
    )
    assert res.status_code == 200
    assert [(r["name"], r["priority"]) for r in res.json()] == [
        ("Pedro", 1), ("Luis", 2), ("Maria", 3),
    ]


async def test_single_donor_spokesperson(client, auth_user):
    a = await _create(client, auth_user["headers"], "Luis", is_donor_spokesperson=True)
    b = await _create(client, auth_user["headers"], "Maria")
    res = await client.post(
        f"/api/v1/representatives/{b['id']}/donor-spokesperson",
        headers=auth_user["headers"],
    )
    assert res.status_code == 200
    assert res.json()["is_donor_spokesperson"] is True

    listing = await client.get("/api/v1/representatives", headers=auth_user["headers"])
    flags = {r["id"]: r["is_donor_spokesperson"] for r in listing.json()}
    assert flags == {a["id"]: False, b["id"]: True}


async def test_other_users_representatives_are_hidden(client, auth_user):
    rep = await _create(client, auth_user["headers"], "Luis")
    other = await register(client, email="otro@example.mx", curp=OTHER_CURP)
    res = await client.get(
        f"/api/v1/representatives/{rep['id']}", headers=other["headers"],
    )
    assert res.status_code == 404
    listing = await client.get("/api/v1/representatives", headers=other["headers"])
    assert listing.json() == []
