"""Hospital Routes — verifies nearby search, filters and condition-aware ranking.

Invariants:
    - Only institutions inside the radius are returned, nearest first
    - Filters narrow the candidate set before ranking
    - Smart search puts a well-equipped hospital first for critical conditions
    - Upserting by CLUES code updates the existing row
    - find_nearest skips institutions without an emergency department
    - Nearby search works across the antimeridian
"""

from tests.services.factories import ORIGIN, institution
from vida.services.hospital_service import HospitalService

LAT, LON = ORIGIN


async def test_nearby_orders_by_distance(client, hospitals):
    res = await client.get(
        "/api/v1/hospitals/nearby",
        params={"latitude": LAT, "longitude": LON, "radius_km": 10},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["count"] == 2
    assert [h["name"] for h in body["hospitals"]] == ["Clinica Roma", "Instituto Cardiologico"]
    assert abs(body["hospitals"][0]["distance_km"] - 1.0) < 0.01
    assert "match_score" not in body["hospitals"][0]


async def test_nearby_filters(client, hospitals):
    res = await client.get("/api/v1/hospitals/nearby", params={
        "latitude": LAT, "longitude": LON, "radius_km": 50, "require_icu": True,
    })
    assert [h["name"] for h in res.json()["hospitals"]] == ["Instituto Cardiologico"]

    res = await client.get("/api/v1/hospitals/nearby", params={
        "latitude": LAT, "longitude": LON, "radius_km": 50, "type": "CLINIC",
    })
    assert [h["name"] for h in res.json()["hospitals"]] == ["Clinica Roma"]


async def test_nearby_rejects_bad_coordinates(client):
    res = await client.get(
        "/api/v1/hospitals/nearby", params={"latitude": 95, "longitude": LON},
    )
    assert res.status_code == 400
    assert res.json()["error"]["details"][0]["field"] == "latitude"


async def test_smart_search_prioritises_capability(client, hospitals):
    res = await client.post("/api/v1/hospitals/nearby/smart", json={
        "latitude": LAT, "longitude": LON, "conditions": ["Infarto"], "radius_km": 15,
    })
    assert res.status_code == 200
    body = res.json()
    first = body["hospitals"][0]
    assert first["name"] == "Instituto Cardiologico"
    assert first["match_score"] == 100
    assert "Cardiologia" in first["matched_specialties"]


async def test_conditions_catalogue(client):
    res = await client.get("/api/v1/hospitals/conditions")
    assert "Diabetes" in res.json()["conditions"]


async def test_list_and_get(client, hospitals):
    res = await client.get("/api/v1/hospitals", params={"state": "CDMX"})
    assert res.json()["count"] == 3
    assert [h["name"] for h in res.json()["hospitals"]] == [
        "Clinica Roma", "Hospital Toluca", "Instituto Cardiologico",
    ]

    one = await client.get(f"/api/v1/hospitals/{hospitals['cardio'].id}")
    assert one.status_code == 200
    assert one.json()["clues_code"] == "DFTEST000002"


async def test_get_unknown_hospital(client):
    res = await client.get("/api/v1/hospitals/00000000-0000-0000-0000-000000000000")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "HOSPITAL_NOT_FOUND"


async def test_upsert_by_clues_updates_in_place(test_db, hospitals):
    service = HospitalService(test_db)
    updated = await service.upsert_by_clues(institution(
        "Clinica Roma Norte", 1.0, type="CLINIC", clues_code="DFTEST000001",
    ))
    assert updated.id == hospitals["near"].id
    assert updated.name == "Clinica Roma Norte"
    assert len(await service.list_all()) == 3


async def test_find_nearest_requires_emergency(test_db, hospitals):
    service = HospitalService(test_db)
    await service.upsert_by_clues(institution(
        "Consultorio Sin Urgencias", 0.3, type="CLINIC", has_emergency=False,
        clues_code="DFTEST000009",
    ))
    nearby = await service.find_nearby(LAT, LON, radius_km=5)
    assert nearby[0].hospital.name == "Consultorio Sin Urgencias"

    nearest = await service.find_nearest(LAT, LON)
    assert nearest.hospital.name == "Clinica Roma"
    assert nearest.hospital.has_emergency is True


async def test_find_nearby_across_antimeridian(test_db):
    service = HospitalService(test_db)
    for name, lon, clues in (
        ("Hospital Este", 179.97, "FJTEST000001"),
        ("Hospital Oeste", -179.97, "FJTEST000002"),
        ("Hospital Lejano", 178.0, "FJTEST000003"),
    ):
        await service.upsert_by_clues(institution(
            name, 0, latitude=-17.8, longitude=lon, clues_code=clues,
        ))
    found = await service.find_nearby(-17.8, 179.99, radius_km=10)
    assert {r.hospital.name for r in found} == {"Hospital Este", "Hospital Oeste"}
    assert found[0].hospital.name == "Hospital Este"
