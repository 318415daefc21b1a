import pytest

from conftest import auth_headers
from freightfloo.models import Notification
from freightfloo.models.enums import NotificationType, ShipmentStatus


@pytest.fixture
def completed(db, assigned):
    shipment, bid = assigned
    shipment.status = ShipmentStatus.COMPLETED.value
    db.commit()
    return shipment, bid


def _review(client, reviewer, reviewee, shipment, rating=5, **fields):
    return client.post("/api/reviews", json={
        "reviewee_id": reviewee.id, "shipment_id": shipment.id, "rating": rating, **fields,
    }, headers=auth_headers(reviewer))


class TestCreateReview:

    def test_shipper_reviews_carrier(self, client, db, shipper, carrier, completed):
        shipment, _ = completed
        r = _review(client, shipper, carrier, shipment, 4, comment="On time, careful with the load")
        assert r.status_code == 201
        assert r.json()["rating"] == 4

        db.expire_all()
        note = db.query(Notification).filter(Notification.user_id == carrier.id).one()
        assert note.type == NotificationType.NEW_REVIEW.value

    def test_requires_completed_shipment(self, client, shipper, carrier, assigned):
        shipment, _ = assigned
        assert _review(client, shipper, carrier, shipment).status_code == 403

    def test_outsider_cannot_review(self, client, carrier, carrier2, completed):
        shipment, _ = completed
        assert _review(client, carrier2, carrier, shipment).status_code == 403

    def test_reviewee_must_be_a_party(self, client, shipper, carrier2, completed):
        shipment, _ = completed
        assert _review(client, shipper, carrier2, shipment).status_code == 403

    def test_no_self_review(self, client, shipper, completed):
        shipment, _ = completed
        assert _review(client, shipper, shipper, shipment).status_code == 400

    def test_one_review_per_shipment(self, client, shipper, carrier, completed):
        shipment, _ = completed
        assert _review(client, shipper, carrier, shipment).status_code == 201
        assert _review(client, shipper, carrier, shipment, 1).status_code == 409

    def test_needs_a_shipment_or_trip(self, client, shipper, carrier):
        r = client.post("/api/reviews", json={"reviewee_id": carrier.id, "rating": 3},
                        headers=auth_headers(shipper))
        assert r.status_code == 400

    def test_rating_range(self, client, shipper, carrier, completed):
        shipment, _ = completed
        assert _review(client, shipper, carrier, shipment, 6).status_code == 422


def test_summary_with_breakdown(client, shipper, carrier, completed):
    shipment, _ = completed
    _review(client, shipper, carrier, shipment, 4)
    _review(client, carrier, shipper, shipment, 5)

    r = client.get("/api/reviews", params={"shipment_id": shipment.id})
    body = r.json()
    assert body["total_reviews"] == 2
    assert body["average_rating"] == 4.5
    assert body["rating_breakdown"] == {"4": 1, "5": 1}

    r = client.get("/api/reviews", params={"reviewee_id": carrier.id})
    assert r.json()["total_reviews"] == 1


def test_private_reviews_hidden(client, shipper, carrier, completed):
    shipment, _ = completed
    _review(client, shipper, carrier, shipment, is_public=False)
    assert client.get("/api/reviews").json()["total_reviews"] == 0
