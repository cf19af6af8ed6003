"""Panic Routes — verifies activation, representative fan-out, closing and expiry.

Invariants:
    - Activation persists an ACTIVE alert with a hospital snapshot
    - Every opted-in representative gets an SMS; email only with an address
    - A failed SMS is reported per representative, never as a request failure
    - A notifier or socket failure still answers 201 and leaves the alert ACTIVE
    - Only ACTIVE alerts can be cancelled or resolved (404 afterwards)
    - Alerts older than the TTL read back as EXPIRED
"""

from datetime import timedelta
from uuid import UUID

from sqlalchemy import select, update

from tests.services.factories import ORIGIN, OTHER_CURP, register
from vida.api.dependencies import get_notification_service
from vida.core.clock import utcnow
from vida.main import app
from vida.models.notification import Notification
from vida.models.panic_alert import PanicAlert

LAT, LON = ORIGIN


async def _add_rep(client, headers, name, phone, **extra):
    res = await client.post("/api/v1/representatives", headers=headers, json={
        "name": name, "phone": phone, "relation": "Hermano", **extra,
    })
    assert res.status_code == 201, res.text
    return res.json()


async def _activate(client, headers, **extra):
    return await client.post(
        "/api/v1/emergency/panic", headers=headers,
        json={"latitude": LAT, "longitude": LON, **extra},
    )


async def test_activate_notifies_representatives(client, auth_user, gateways, hospitals, test_db):
    headers = auth_user["headers"]
    await _add_rep(client, headers, "Luis", "5511112222", email="luis@example.mx")
    await _add_rep(client, headers, "Maria", "5533334444")

    res = await _activate(client, headers, message="Me siento mal")
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["status"] == "ACTIVE"
    assert [h["name"] for h in body["nearby_hospitals"]] == [
        "Clinica Roma", "Instituto Cardiologico",
    ]

    notified = body["representatives_notified"]
    assert [n["name"] for n in notified] == ["Luis", "Maria"]
    assert notified[0]["sms_status"] == "sent"
    assert notified[0]["email_status"] == "sent"
    assert notified[1]["email_status"] == "skipped"

    assert [m["to"] for m in gateways.sms.sent] == ["5511112222", "5533334444"]
    assert "Clinica Roma" in gateways.sms.sent[0]["body"]
    assert [m["to"] for m in gateways.email.sent] == ["luis@example.mx"]

    user_id = auth_user["user"]["id"]
    alerts = gateways.hub.named("panic-alert")
    assert alerts[0][0] == f"representative-{user_id}"
    assert alerts[0][1]["alert_id"] == body["alert_id"]
    sent = gateways.hub.named("panic-alert-sent")
    assert sent == [(f"user-{user_id}", {
        "alert_id": body["alert_id"], "representatives_notified": 2,
    })]

    rows = (await test_db.execute(select(Notification))).scalars().all()
    assert sorted(r.channel for r in rows) == ["EMAIL", "SMS", "SMS"]
    assert all(r.type == "EMERGENCY_ALERT" for r in rows)

    alert = await test_db.get(PanicAlert, UUID(body["alert_id"]))
    assert alert.message == "Me siento mal"
    assert len(alert.notifications_sent) == 2


async def test_failed_sms_is_reported_not_raised(client, auth_user, gateways):
    headers = auth_user["headers"]
    await _add_rep(client, headers, "Luis", "5511112222")
    gateways.sms.fail_for.add("5511112222")

    res = await _activate(client, headers)
    assert res.status_code == 201
    outcome = res.json()["representatives_notified"][0]
    assert outcome["sms_status"] == "failed"
    assert outcome["error"] == "SMS: undeliverable"


async def test_opted_out_representative_is_skipped(client, auth_user, gateways):
    headers = auth_user["headers"]
    await _add_rep(client, headers, "Luis", "5511112222", notify_on_emergency=False)

    res = await _activate(client, headers)
    assert res.json()["representatives_notified"] == []
    assert gateways.sms.sent == []


async def test_known_conditions_rank_by_capability(client, auth_user, hospitals):
    headers = auth_user["headers"]
    await client.put("/api/v1/profile", headers=headers, json={"conditions": ["Infarto"]})

    res = await _activate(client, headers)
    first = res.json()["nearby_hospitals"][0]
    assert first["name"] == "Instituto Cardiologico"
    assert first["match_score"] == 100


async def test_invalid_location(client, auth_user):
    res = await client.post(
        "/api/v1/emergency/panic", headers=auth_user["headers"],
        json={"latitude": 120, "longitude": LON},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_LOCATION"


async def test_requires_authentication(client):
    res = await client.post(
        "/api/v1/emergency/panic", json={"latitude": LAT, "longitude": LON},
    )
    assert res.status_code == 401


async def test_cancel_then_cancel_again(client, auth_user, gateways):
    headers = auth_user["headers"]
    alert_id = (await _activate(client, headers)).json()["alert_id"]

    res = await client.delete(f"/api/v1/emergency/panic/{alert_id}", headers=headers)
    assert res.status_code == 200
    assert res.json()["status"] == "CANCELLED"
    assert res.json()["cancelled_at"] is not None
    assert gateways.hub.named("panic-cancelled")[0][1] == {
        "alert_id": alert_id, "status": "CANCELLED",
    }

    again = await client.delete(f"/api/v1/emergency/panic/{alert_id}", headers=headers)
    assert again.status_code == 404
    assert again.json()["error"]["code"] == "NOT_FOUND"


async def test_resolve_and_history(client, auth_user):
    headers = auth_user["headers"]
    first = (await _activate(client, headers)).json()["alert_id"]
    second = (await _activate(client, headers)).json()["alert_id"]

    active = await client.get("/api/v1/emergency/panic/active", headers=headers)
    assert active.json()["count"] == 2

    res = await client.post(f"/api/v1/emergency/panic/{first}/resolve", headers=headers)
    assert res.json()["status"] == "RESOLVED"

    active = await client.get("/api/v1/emergency/panic/active", headers=headers)
    assert [a["id"] for a in active.json()["alerts"]] == [second]

    history = await client.get(
        "/api/v1/emergency/panic/history", headers=headers, params={"limit": 10},
    )
    assert history.json()["count"] == 2

    one = await client.get(f"/api/v1/emergency/panic/{first}", headers=headers)
    assert one.json()["resolved_at"] is not None


async def test_other_users_alert_is_invisible(client, auth_user):
    alert_id = (await _activate(client, auth_user["headers"])).json()["alert_id"]
    other = await register(client, email="otro@example.mx", curp=OTHER_CURP)
    res = await client.get(f"/api/v1/emergency/panic/{alert_id}", headers=other["headers"])
    assert res.status_code == 404


async def test_stale_alert_expires_on_read(client, auth_user, test_db):
    headers = auth_user["headers"]
    alert_id = (await _activate(client, headers)).json()["alert_id"]
    await test_db.execute(
        update(PanicAlert)
        .where(PanicAlert.id == UUID(alert_id))
        .values(created_at=utcnow() - timedelta(hours=5)),
    )
    await test_db.commit()

    active = await client.get("/api/v1/emergency/panic/active", headers=headers)
    assert active.json()["count"] == 0

    one = await client.get(f"/api/v1/emergency/panic/{alert_id}", headers=headers)
    assert one.json()["status"] == "EXPIRED"
    assert one.json()["expired_at"] is not None

    res = await client.post(f"/api/v1/emergency/panic/{alert_id}/resolve", headers=headers)
    assert res.status_code == 404


class _BrokenNotifier:
    async def notify_representatives(self, *args, **kwargs):
        raise RuntimeError("notification backend down")


async def test_notifier_failure_keeps_alert_active(client, auth_user, gateways, test_db):
    app.dependency_overrides[get_notification_service] = lambda: _BrokenNotifier()
    res = await _activate(client, auth_user["headers"])
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["status"] == "ACTIVE"
    assert body["representatives_notified"] == []

    alert = await test_db.get(PanicAlert, UUID(body["alert_id"]))
    assert alert.status == "ACTIVE"
    assert alert.notifications_sent == []
    assert gateways.hub.named("panic-alert")


async def test_socket_failure_keeps_alert_active(client, auth_user, gateways, test_db):
    headers = auth_user["headers"]
    await _add_rep(client, headers, "Luis", "5511112222")
    gateways.hub.broken = True

    res = await _activate(client, headers)
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["representatives_notified"][0]["sms_status"] == "sent"

    alert = await test_db.get(PanicAlert, UUID(body["alert_id"]))
    assert alert.status == "ACTIVE"
    assert len(alert.notifications_sent) == 1
    assert gateways.hub.events == []
