from datetime import datetime, timedelta, timezone

import pytest

from conftest import auth_headers
from freightfloo.core.errors import ConflictError, InsufficientStateError, ValidationError
from freightfloo.models import Notification, Shipment
from freightfloo.models.enums import NotificationType, PaymentStatus, ShipmentStatus, TrackingStatus
from freightfloo.services import shipments
from freightfloo.services.events import EventBus


def _pickup(days=3):
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def _status(client, user, shipment_id, status, **pod):
    return client.patch(
        f"/api/shipments/{shipment_id}/status", json={"status": status, **pod}, headers=auth_headers(user)
    )


class TestCreateAndEdit:

    def test_create_auction(self, client, shipper):
        r = client.post("/api/shipments", json={
            "title": "Pallets", "origin": "Chicago, IL", "destination": "Denver, CO",
            "pickup_date": _pickup(), "pricing_type": "auction", "starting_bid": 1200,
        }, headers=auth_headers(shipper))
        assert r.status_code == 201
        body = r.json()
        assert body["status"] == ShipmentStatus.ACTIVE.value
        assert body["payment_status"] == PaymentStatus.NONE.value
        assert body["starting_bid"] == 1200
        assert body["offer_price"] is None

    def test_auction_needs_starting_bid(self, client, shipper):
        r = client.post("/api/shipments", json={
            "title": "Pallets", "origin": "A", "destination": "B", "pickup_date": _pickup(),
            "pricing_type": "auction",
        }, headers=auth_headers(shipper))
        assert r.status_code == 400

    def test_offer_needs_offer_price(self, client, shipper):
        r = client.post("/api/shipments", json={
            "title": "Pallets", "origin": "A", "destination": "B", "pickup_date": _pickup(),
            "pricing_type": "offer", "starting_bid": 900,
        }, headers=auth_headers(shipper))
        assert r.status_code == 400

    def test_delivery_before_pickup_rejected(self, client, shipper):
        r = client.post("/api/shipments", json={
            "title": "Pallets", "origin": "A", "destination": "B", "pickup_date": _pickup(5),
            "delivery_date": _pickup(1), "starting_bid": 900,
        }, headers=auth_headers(shipper))
        assert r.status_code == 400

    def test_mixed_offset_dates_are_compared_in_utc(self, client, shipper):
        r = client.post("/api/shipments", json={
            "title": "Pallets", "origin": "A", "destination": "B", "starting_bid": 900,
            "pickup_date": "2026-11-01T10:00:00Z", "delivery_date": "2026-11-03T10:00:00",
        }, headers=auth_headers(shipper))
        assert r.status_code == 201

        # 09:00 at -05:00 is 14:00 UTC, after a naive 12:00 delivery
        r = client.post("/api/shipments", json={
            "title": "Pallets", "origin": "A", "destination": "B", "starting_bid": 900,
            "pickup_date": "2026-11-01T09:00:00-05:00", "delivery_date": "2026-11-01T12:00:00",
        }, headers=auth_headers(shipper))
        assert r.status_code == 400

    def test_edit_with_mixed_offset_dates(self, client, shipper, make_shipment):
        shipment = make_shipment(shipper)
        r = client.patch(f"/api/shipments/{shipment.id}", json={"delivery_date": "2030-01-01T08:00:00"},
                         headers=auth_headers(shipper))
        assert r.status_code == 200

        r = client.patch(f"/api/shipments/{shipment.id}", json={"delivery_date": "2020-01-01T08:00:00Z"},
                         headers=auth_headers(shipper))
        assert r.status_code == 400

    @pytest.mark.parametrize("field_name", ["title", "origin", "destination", "pickup_date"])
    def test_required_fields_cannot_be_cleared(self, client, db, shipper, make_shipment, field_name):
        shipment = make_shipment(shipper)
        r = client.patch(f"/api/shipments/{shipment.id}", json={field_name: None}, headers=auth_headers(shipper))
        assert r.status_code == 400
        assert r.json()["details"] == {"fields": [field_name]}

        db.expire_all()
        assert getattr(db.get(Shipment, shipment.id), field_name) is not None

    def test_optional_fields_can_be_cleared(self, client, shipper, make_shipment):
        shipment = make_shipment(shipper, description="Fragile")
        r = client.patch(f"/api/shipments/{shipment.id}", json={"description": None},
                         headers=auth_headers(shipper))
        assert r.status_code == 200
        assert r.json()["description"] is None

    def test_carrier_cannot_post(self, client, carrier):
        r = client.post("/api/shipments", json={
            "title": "Pallets", "origin": "A", "destination": "B", "pickup_date": _pickup(), "starting_bid": 900,
        }, headers=auth_headers(carrier))
        assert r.status_code == 403
        assert "Carrier" in r.json()["detail"]

    def test_pricing_type_is_immutable(self, client, shipper, make_shipment):
        shipment = make_shipment(shipper)
        r = client.patch(f"/api/shipments/{shipment.id}", json={"pricing_type": "offer"},
                         headers=auth_headers(shipper))
        assert r.status_code == 400

        r = client.patch(f"/api/shipments/{shipment.id}", json={"title": "Pallets (2)"},
                         headers=auth_headers(shipper))
        assert r.status_code == 200
        assert r.json()["title"] == "Pallets (2)"
        assert r.json()["pricing_type"] == "auction"

    def test_no_edits_after_first_bid(self, client, shipper, carrier, make_shipment):
        shipment = make_shipment(shipper)
        client.post("/api/bids", json={"shipment_id": shipment.id, "amount": 900}, headers=auth_headers(carrier))
        r = client.patch(f"/api/shipments/{shipment.id}", json={"title": "Changed"}, headers=auth_headers(shipper))
        assert r.status_code == 409


class TestListing:

    def test_defaults_to_active_with_pagination(self, client, db, shipper, make_shipment):
        for i in range(3):
            make_shipment(shipper, title=f"Load {i}")
        cancelled = make_shipment(shipper, title="Gone")
        cancelled.status = ShipmentStatus.CANCELLED.value
        db.commit()

        r = client.get("/api/shipments", params={"limit": 2})
        body = r.json()
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
        assert len(body["shipments"]) == 2
        assert all(s["status"] == "ACTIVE" for s in body["shipments"])

    def test_origin_substring_filter(self, client, shipper, make_shipment):
        make_shipment(shipper, origin="Chicago, IL")
        make_shipment(shipper, origin="Dallas, TX")
        r = client.get("/api/shipments", params={"origin": "dallas"})
        assert [s["origin"] for s in r.json()["shipments"]] == ["Dallas, TX"]

    def test_my_shipments(self, client, shipper, make_user, make_shipment):
        other = make_user()
        mine = make_shipment(shipper)
        make_shipment(other)
        r = client.get("/api/shipments/mine", headers=auth_headers(shipper))
        assert [s["id"] for s in r.json()] == [mine.id]


class TestTracking:

    def test_full_lifecycle_to_completed(self, client, db, shipper, carrier, assigned):
        shipment, _ = assigned
        for step in (TrackingStatus.PICKED_UP, TrackingStatus.IN_TRANSIT):
            r = _status(client, carrier, shipment.id, step.value)
            assert r.status_code == 200
            assert r.json()["current_status"] == step.value

        r = _status(client, carrier, shipment.id, "DELIVERED", pod_received=True, pod_notes="Signed by J. Doe")
        assert r.status_code == 200
        assert r.json()["pod_received"] is True

        r = _status(client, shipper, shipment.id, "COMPLETED")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == ShipmentStatus.COMPLETED.value
        assert body["completion_time"] is not None
        assert body["pickup_time"] and body["transit_time"] and body["delivery_time"]

        db.expire_all()
        updates = db.query(Notification).filter(
            Notification.type == NotificationType.SHIPMENT_STATUS_UPDATE.value
        ).all()
        assert {n.user_id for n in updates} == {shipper.id, carrier.id}

    def test_steps_cannot_be_skipped(self, client, carrier, assigned):
        shipment, _ = assigned
        r = _status(client, carrier, shipment.id, "IN_TRANSIT")
        assert r.status_code == 409
        assert "ASSIGNED to IN_TRANSIT" in r.json()["detail"]

    def test_completion_requires_proof_of_delivery(self, client, carrier, assigned):
        shipment, _ = assigned
        for step in ("PICKED_UP", "IN_TRANSIT", "DELIVERED"):
            assert _status(client, carrier, shipment.id, step).status_code == 200

        r = _status(client, carrier, shipment.id, "COMPLETED")
        assert r.status_code == 400

        r = _status(client, carrier, shipment.id, "COMPLETED", pod_received=True, pod_image="https://files/pod.jpg")
        assert r.status_code == 200
        assert r.json()["pod_image"] == "https://files/pod.jpg"

    @pytest.mark.parametrize("pod", [
        {"pod_received": True},
        {"pod_image": "https://files/pod.jpg"},
        {"pod_notes": "Signed"},
    ])
    def test_proof_of_delivery_refused_before_delivery(self, client, db, carrier, assigned, pod):
        shipment, _ = assigned
        r = _status(client, carrier, shipment.id, "PICKED_UP", **pod)
        assert r.status_code == 400

        db.expire_all()
        shipment = db.get(Shipment, shipment.id)
        assert shipment.current_status is None
        assert shipment.pod_received is False

    def test_early_proof_cannot_unlock_completion(self, client, carrier, assigned):
        shipment, _ = assigned
        assert _status(client, carrier, shipment.id, "PICKED_UP", pod_received=True).status_code == 400
        for step in ("PICKED_UP", "IN_TRANSIT", "DELIVERED"):
            assert _status(client, carrier, shipment.id, step).status_code == 200

        r = _status(client, carrier, shipment.id, "COMPLETED")
        assert r.status_code == 400
        assert "Proof of delivery" in r.json()["detail"]

    def test_outsider_cannot_update(self, client, carrier2, assigned):
        shipment, _ = assigned
        assert _status(client, carrier2, shipment.id, "PICKED_UP").status_code == 403

    def test_not_before_payment(self, db, carrier, awaiting_payment):
        shipment, _ = awaiting_payment
        with pytest.raises(InsufficientStateError):
            shipments.update_tracking_status(db, EventBus(), carrier, shipment.id, "PICKED_UP")

    def test_unknown_status(self, db, carrier, assigned):
        shipment, _ = assigned
        with pytest.raises(ValidationError):
            shipments.update_tracking_status(db, EventBus(), carrier, shipment.id, "LOST")

    def test_concurrent_step_conflicts(self, db, carrier, assigned):
        """Another request advanced the sub-state after we read it."""
        shipment, _ = assigned
        events = EventBus()
        shipments.update_tracking_status(db, events, carrier, shipment.id, "PICKED_UP")
        with pytest.raises(ConflictError):
            shipments.update_tracking_status(db, events, carrier, shipment.id, "PICKED_UP")

    def test_tracking_view(self, client, carrier, shipper, assigned):
        shipment, _ = assigned
        _status(client, carrier, shipment.id, "PICKED_UP")
        r = client.get(f"/api/shipments/{shipment.id}/tracking", headers=auth_headers(shipper))
        assert r.status_code == 200
        body = r.json()
        assert [e["status"] for e in body["events"]] == ["PENDING", "PICKED_UP"]
        assert body["carrier"]["company_name"] == "Fast Freight LLC"
        # no delivery date: pickup + 4 days
        assert body["estimated_delivery"] is not None


class TestCancel:

    def test_cancel_active(self, client, shipper, make_shipment):
        shipment = make_shipment(shipper)
        r = client.post(f"/api/shipments/{shipment.id}/cancel", headers=auth_headers(shipper))
        assert r.status_code == 200
        assert r.json()["status"] == ShipmentStatus.CANCELLED.value

    def test_cancel_pending_notifies_carrier(self, client, db, shipper, carrier, awaiting_payment):
        shipment, _ = awaiting_payment
        r = client.post(f"/api/shipments/{shipment.id}/cancel", headers=auth_headers(shipper))
        assert r.status_code == 200
        assert r.json()["payment_status"] == PaymentStatus.NONE.value
        db.expire_all()
        note = db.query(Notification).filter(Notification.user_id == carrier.id).one()
        assert note.type == NotificationType.SHIPMENT_CANCELLED.value

    def test_cannot_cancel_assigned(self, client, shipper, assigned):
        shipment, _ = assigned
        r = client.post(f"/api/shipments/{shipment.id}/cancel", headers=auth_headers(shipper))
        assert r.status_code == 409
        assert r.json()["code"] == "INSUFFICIENT_STATE"

    def test_only_owner_cancels(self, client, carrier, make_shipment, shipper):
        shipment = make_shipment(shipper)
        r = client.post(f"/api/shipments/{shipment.id}/cancel", headers=auth_headers(carrier))
        assert r.status_code == 403


def test_unpaid_shipment_never_reaches_assigned(client, db, shipper, carrier, awaiting_payment, make_shipment):
    shipment, bid = awaiting_payment

    # tracking step on a shipment still awaiting payment
    assert _status(client, carrier, shipment.id, "PICKED_UP").status_code == 409
    # re-deciding the accepted bid
    r = client.patch(f"/api/bids/{bid.id}", json={"status": "ACCEPTED"}, headers=auth_headers(shipper))
    assert r.status_code == 409
    # editing the status directly
    r = client.patch(f"/api/shipments/{shipment.id}", json={"status": "ASSIGNED"}, headers=auth_headers(shipper))
    assert r.status_code == 409
    # taking a fixed-price offer
    offer = make_shipment(shipper, pricing_type="offer", offer_price=500.0)
    r = client.post("/api/bids", json={"shipment_id": offer.id, "amount": 500}, headers=auth_headers(carrier))
    assert r.status_code == 201

    db.expire_all()
    for row in db.query(Shipment).all():
        assert row.status == ShipmentStatus.PENDING.value
        assert row.payment_status == PaymentStatus.PENDING.value
    assert db.query(Shipment).filter(Shipment.status == ShipmentStatus.ASSIGNED.value).count() == 0
