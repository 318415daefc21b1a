"""Shared fixtures: in-memory SQLite, a TestClient wired to it, users of each role."""
import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from freightfloo.core.deps import get_db, sign_session
from freightfloo.main import app
from freightfloo.models import Base, Bid, Shipment, User
from freightfloo.models.enums import BidStatus, PaymentStatus, PricingType, Role, ShipmentStatus


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(role=Role.SHIPPER.value, **fields):
        n = next(counter)
        fields.setdefault("email", f"{role.lower()}{n}@example.com")
        fields.setdefault("name", f"{role.title()} {n}")
        user = User(role=role, **fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def shipper(make_user):
    return make_user(Role.SHIPPER.value, company_name="Acme Goods")


@pytest.fixture
def carrier(make_user):
    return make_user(Role.CARRIER.value, company_name="Fast Freight LLC", mc_number="MC123456")


@pytest.fixture
def carrier2(make_user):
    return make_user(Role.CARRIER.value, company_name="Road Runner Trucking")


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN.value)


def auth_headers(user):
    return {"Authorization": f"Bearer {sign_session({'uid': user.id})}"}


@pytest.fixture
def make_shipment(db):
    def _make(owner, pricing_type=PricingType.AUCTION.value, starting_bid=1000.0, offer_price=None, **fields):
        fields.setdefault("title", "Pallets to Denver")
        fields.setdefault("origin", "Chicago, IL")
        fields.setdefault("destination", "Denver, CO")
        fields.setdefault("pickup_date", datetime.now(timezone.utc) + timedelta(days=3))
        if pricing_type == PricingType.OFFER.value:
            starting_bid, offer_price = None, offer_price or 500.0
        shipment = Shipment(
            user_id=owner.id,
            pricing_type=pricing_type,
            starting_bid=starting_bid,
            offer_price=offer_price,
            **fields,
        )
        db.add(shipment)
        db.commit()
        db.refresh(shipment)
        return shipment

    return _make


@pytest.fixture
def awaiting_payment(db, shipper, carrier, make_shipment):
    """Shipment PENDING with an accepted $750 bid (payment not yet taken)."""
    shipment = make_shipment(shipper)
    shipment.status = ShipmentStatus.PENDING.value
    shipment.payment_status = PaymentStatus.PENDING.value
    bid = Bid(shipment_id=shipment.id, user_id=carrier.id, amount=750.0, status=BidStatus.ACCEPTED.value)
    db.add(bid)
    db.commit()
    db.refresh(shipment)
    db.refresh(bid)
    return shipment, bid


@pytest.fixture
def assigned(db, awaiting_payment):
    """Shipment ASSIGNED after payment of the accepted $750 bid."""
    shipment, bid = awaiting_payment
    shipment.status = ShipmentStatus.ASSIGNED.value
    shipment.payment_status = PaymentStatus.COMPLETED.value
    db.commit()
    db.refresh(shipment)
    return shipment, bid
