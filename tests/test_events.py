import pytest
from sqlalchemy.exc import SQLAlchemyError

from freightfloo.core.config import settings
from freightfloo.models import Notification
from freightfloo.models.enums import NotificationType
from freightfloo.services import email, events
from freightfloo.services.events import EventBus


def test_dispatch_writes_rows_and_clears_queue(db, shipper):
    bus = EventBus()
    bus.emit(NotificationType.NEW_BID, shipper.id, "New Bid", "A carrier bid $900", shipment_id=None)
    assert bus.dispatch(db) == 1
    assert bus.events == []
    assert db.query(Notification).one().type == "NEW_BID"
    assert bus.dispatch(db) == 0


def test_dispatch_swallows_database_errors(db, shipper, monkeypatch, caplog):
    bus = EventBus()
    bus.emit(NotificationType.NEW_BID, shipper.id, "New Bid", "boom")

    def _fail():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db, "commit", _fail)
    assert bus.dispatch(db) == 0
    assert "Failed to store 1 notification(s)" in caplog.text


def test_email_handed_to_sender(db, shipper, monkeypatch):
    sent = []
    monkeypatch.setattr(events, "send_templated_email",
                        lambda to, template, context: sent.append((to, template)) or {"email": "success"})
    bus = EventBus()
    bus.emit(NotificationType.NEW_BID, shipper.id, "New Bid", "A carrier bid $900",
             email_template="new_bid",
             email_context={"shipment_title": "Pallets", "bid_amount": 900.0, "carrier_name": "Fast Freight"})
    bus.dispatch(db)
    assert sent == [(shipper.email, "new_bid")]


def test_email_failure_does_not_raise(db, shipper, monkeypatch):
    def _explode(*args):
        raise RuntimeError("template missing")

    monkeypatch.setattr(events, "send_templated_email", _explode)
    bus = EventBus()
    bus.emit(NotificationType.NEW_BID, shipper.id, "New Bid", "x", email_template="new_bid")
    assert bus.dispatch(db) == 1


def test_render_new_bid_email():
    rendered = email.render_email(
        "new_bid", shipment_title="Pallets to Denver", bid_amount=880.0, carrier_name="Fast Freight LLC",
    )
    assert rendered["subject"] == "New Bid Received - Pallets to Denver"
    assert "$880.00" in rendered["html"]
    assert "Fast Freight LLC" in rendered["html"]


@pytest.mark.parametrize("refund_status, subject", [
    ("PENDING", "Refund Requested - Pallets to Denver"),
    ("COMPLETED", "Refund Approved - Pallets to Denver"),
    ("REJECTED", "Refund Rejected - Pallets to Denver"),
])
def test_refund_subject_follows_outcome(refund_status, subject):
    rendered = email.render_email(
        "refund_processed", shipment_title="Pallets to Denver", refund_amount=300.0,
        reason="DAMAGED", refund_status=refund_status,
    )
    assert rendered["subject"] == subject
    assert subject.split(" - ")[0] in rendered["html"]


def test_send_skipped_without_smtp(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_USER", None)
    assert email.send_email("someone@example.com", "Hi", "<p>Hi</p>") == {"email": "skipped"}
