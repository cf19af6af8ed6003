"""Emergency Routes — verifies QR access by responders, auditing and the follow-up alerts.

Invariants:
    - A valid QR token returns the patient's emergency payload and an access token
    - Each scan writes an EmergencyAccess row and an AuditLog row
    - Representatives opted in to access alerts are notified in the background
    - Unknown QR and access tokens answer 404 without revealing anything
"""

from sqlalchemy import select

from tests.services.factories import ORIGIN
from vida.models.audit_log import AuditLog
from vida.models.emergency_access import EmergencyAccess

LAT, LON = ORIGIN


async def _qr_token(client, headers) -> str:
    res = await client.get("/api/v1/profile/qr", headers=headers)
    assert res.status_code == 200, res.text
    return res.json()["qr_token"]


def _access(qr_token: str, **extra) -> dict:
    return {
        "qr_token": qr_token,
        "accessor_name": "Dr. Ramirez",
        "accessor_role": "Paramedico",
        "institution_name": "Cruz Roja",
        "latitude": LAT,
        "longitude": LON,
        "location_name": "Zocalo",
        **extra,
    }


async def test_access_returns_emergency_payload(client, auth_user, test_db):
    headers = auth_user["headers"]
    await client.put("/api/v1/profile", headers=headers, json={
        "blood_type": "O+", "allergies": ["Penicilina"], "conditions": ["Diabetes"],
    })
    await client.post("/api/v1/representatives", headers=headers, json={
        "name": "Luis", "phone": "5511112222", "relation": "Hermano",
    })
    token = await _qr_token(client, headers)

    res = await client.post("/api/v1/emergency/access", json=_access(token))
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["patient"]["name"] == "Ana Garcia"
    assert body["medical_info"]["blood_type"] == "O+"
    assert body["medical_info"]["allergies"] == ["Penicilina"]
    assert body["directive"]["has_active_directive"] is False
    assert body["representatives"] == [{
        "name": "Luis", "phone": "5511112222", "relation": "Hermano", "priority": 1,
    }]
    assert body["access_token"]

    access = (await test_db.execute(select(EmergencyAccess))).scalar_one()
    assert access.accessor_name == "Dr. Ramirez"
    assert access.qr_token_used == token
    audit = (await test_db.execute(
        select(AuditLog).where(AuditLog.action == "EMERGENCY_ACCESS"),
    )).scalar_one()
    assert audit.actor_name == "Dr. Ramirez"


async def test_access_notifies_representatives_in_background(
    client, auth_user, gateways, hospitals,
):
    headers = auth_user["headers"]
    await client.post("/api/v1/representatives", headers=headers, json={
        "name": "Luis", "phone": "5511112222", "relation": "Hermano",
    })
    await client.post("/api/v1/representatives", headers=headers, json={
        "name": "Maria", "phone": "5533334444", "relation": "Madre",
        "notify_on_access": False,
    })
    token = await _qr_token(client, headers)

    res = await client.post("/api/v1/emergency/access", json=_access(token))
    assert res.status_code == 200

    assert [m["to"] for m in gateways.sms.sent] == ["5511112222"]
    assert "Dr. Ramirez" in gateways.sms.sent[0]["body"]

    user_id = auth_user["user"]["id"]
    alert = gateways.hub.named("qr-access-alert")
    assert alert[0][0] == f"representative-{user_id}"
    assert alert[0][1]["accessor_name"] == "Dr. Ramirez"
    assert alert[0][1]["location"] == "Zocalo"
    assert alert[0][1]["nearest_hospital"] == "Clinica Roma"

    notice = gateways.hub.named("qr-access-notification")
    assert notice[0][0] == f"user-{user_id}"
    assert notice[0][1]["representatives_notified"] == 1


async def test_access_without_location(client, auth_user, gateways):
    token = await _qr_token(client, auth_user["headers"])
    res = await client.post("/api/v1/emergency/access", json=_access(
        token, latitude=None, longitude=None, location_name=None,
    ))
    assert res.status_code == 200
    alert = gateways.hub.named("qr-access-alert")
    assert alert[0][1]["location"] == "Ubicación no disponible"
    assert alert[0][1]["nearest_hospital"] is None


async def test_unknown_qr_token(client, gateways):
    res = await client.post(
        "/api/v1/emergency/access", json=_access("ffffffff-0000-0000-0000-000000000000"),
    )
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "PATIENT_NOT_FOUND"
    assert gateways.hub.events == []


async def test_verify_access_token(client, auth_user):
    token = await _qr_token(client, auth_user["headers"])
    access_token = (
        await client.post("/api/v1/emergency/access", json=_access(token))
    ).json()["access_token"]

    res = await client.get(f"/api/v1/emergency/verify/{access_token}")
    assert res.status_code == 200
    assert res.json()["valid"] is True
    assert res.json()["access"]["accessor_role"] == "Paramedico"

    missing = await client.get("/api/v1/emergency/verify/not-a-real-token")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "ACCESS_TOKEN_INVALID"


async def test_access_history_is_per_patient(client, auth_user):
    headers = auth_user["headers"]
    token = await _qr_token(client, headers)
    await client.post("/api/v1/emergency/access", json=_access(token))
    await client.post(
        "/api/v1/emergency/access", json=_access(token, accessor_name="Enf. Soto"),
    )

    res = await client.get("/api/v1/emergency/history", headers=headers)
    assert res.json()["count"] == 2
    assert {a["accessor_name"] for a in res.json()["accesses"]} == {
        "Dr. Ramirez", "Enf. Soto",
    }

    anonymous = await client.get("/api/v1/emergency/history")
    assert anonymous.status_code == 401
