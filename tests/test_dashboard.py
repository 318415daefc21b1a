from conftest import auth_headers
from freightfloo.core.capabilities import capabilities_for
from freightfloo.models.enums import Role
from freightfloo.services import payments
from freightfloo.services.events import EventBus


def _stats(client, user):
    r = client.get("/api/dashboard/stats", headers=auth_headers(user))
    assert r.status_code == 200
    return r.json()


def test_capabilities_per_role():
    assert capabilities_for(Role.SHIPPER.value).can_post_shipments
    assert not capabilities_for(Role.SHIPPER.value).can_bid
    assert capabilities_for(Role.CARRIER.value).can_bid
    assert not capabilities_for(Role.CARRIER.value).can_post_shipments
    both = capabilities_for(Role.BOTH.value)
    assert both.can_post_shipments and both.can_bid
    assert not capabilities_for("GUEST").can_bid


def test_stats_follow_the_money(client, db, shipper, carrier, awaiting_payment):
    shipment, bid = awaiting_payment
    payments.complete_payment(db, EventBus(), shipper, shipment.id, bid.id, 750.0)

    body = _stats(client, shipper)
    assert "carrier" not in body
    assert body["shipper"]["shipments_by_status"]["ASSIGNED"] == 1
    assert body["shipper"]["total_spent"] == 750.0

    body = _stats(client, carrier)
    assert "shipper" not in body
    assert body["carrier"]["bids_by_status"]["ACCEPTED"] == 1
    assert body["carrier"]["active_loads"] == 1
    assert body["carrier"]["earnings"] == 750.0


def test_dual_role_gets_both_sections(client, make_user):
    body = _stats(client, make_user(Role.BOTH.value))
    assert body["shipper"]["shipments_total"] == 0
    assert body["carrier"]["bids_total"] == 0


def test_admin_stats(client, admin, shipper, carrier):
    r = client.get("/api/admin/stats", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["users_by_role"] == {"ADMIN": 1, "SHIPPER": 1, "CARRIER": 1}
    assert client.get("/api/admin/stats", headers=auth_headers(shipper)).status_code == 403


def test_user_settings(client, carrier):
    r = client.patch("/api/user/settings", json={"company_phone": "555-0199", "equipment_types": ["flatbed"]},
                     headers=auth_headers(carrier))
    assert r.status_code == 200
    assert r.json()["equipment_types"] == ["flatbed"]

    r = client.patch("/api/user/settings", json={"equipment_types": ["jetpack"]}, headers=auth_headers(carrier))
    assert r.status_code == 400

    r = client.get("/api/user/settings", headers=auth_headers(carrier))
    assert r.json()["company_phone"] == "555-0199"


def test_equipment_catalogue(client):
    assert len(client.get("/api/equipment-types").json()) == 10
    r = client.get("/api/equipment-types", params={"cargo": "pharmaceuticals"})
    assert [e["id"] for e in r.json()] == ["reefer"]


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok", "database": "ok"}
