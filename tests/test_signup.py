import json

import pytest

from freightfloo.core.deps import _serializer
from freightfloo.core.errors import ConflictError, ValidationError
from freightfloo.models import User
from freightfloo.services.signup import SIGNUP_SALT, SignupState, SignupStep, advance

ACCOUNT = {
    "name": "Dana Ortiz",
    "email": "Dana@Example.com",
    "password": "s3cret-pass",
    "confirm_password": "s3cret-pass",
}
PASSWORD = {"password": ACCOUNT["password"]}


def _post(client, data, token=None):
    return client.post("/api/auth/signup", json={"token": token, "data": data})


class TestWizardFlow:

    def test_individual_shipper(self, client, db):
        r = _post(client, {**ACCOUNT, "role": "SHIPPER"})
        assert r.status_code == 200
        body = r.json()
        assert body["step"] == SignupStep.PROFILE.value
        assert body["user"] is None

        r = _post(client, {"user_type": "INDIVIDUAL", **PASSWORD}, body["token"])
        body = r.json()
        assert body["step"] == SignupStep.COMPLETE.value
        assert body["user"]["email"] == "dana@example.com"
        assert body["user"]["role"] == "SHIPPER"
        assert "ff_session" in r.cookies

    def test_company_shipper_needs_company_step(self, client):
        token = _post(client, {**ACCOUNT, "role": "SHIPPER"}).json()["token"]
        body = _post(client, {"user_type": "COMPANY"}, token).json()
        assert body["step"] == SignupStep.COMPANY.value

        r = _post(client, {"company_name": "Acme"}, body["token"])
        assert r.status_code == 400

        r = _post(client, {
            "company_name": "Acme", "company_address": "1 Main St", "company_city": "Austin", **PASSWORD,
        }, body["token"])
        user = r.json()["user"]
        assert user["user_type"] == "COMPANY"
        assert user["company_city"] == "Austin"

    def test_carrier_needs_authority_and_equipment(self, client):
        token = _post(client, {**ACCOUNT, "role": "CARRIER"}).json()["token"]

        r = _post(client, {"equipment_types": ["dry-van"]}, token)
        assert "DOT number or MC number" in r.json()["detail"]

        r = _post(client, {"mc_number": "MC1", "equipment_types": []}, token)
        assert r.status_code == 400

        r = _post(client, {"mc_number": "MC1", "equipment_types": ["spaceship"]}, token)
        assert r.json()["details"] == {"unknown": ["spaceship"]}

        r = _post(client, {"dot_number": "123", "equipment_types": ["reefer", "flatbed"], **PASSWORD}, token)
        user = r.json()["user"]
        assert user["role"] == "CARRIER"
        assert user["equipment_types"] == ["reefer", "flatbed"]

    def test_both_completes_after_account(self, client):
        body = _post(client, {**ACCOUNT, "role": "BOTH"}).json()
        assert body["step"] == SignupStep.COMPLETE.value
        assert body["user"]["role"] == "BOTH"


class TestAccountStep:

    @pytest.mark.parametrize("data, message", [
        ({**ACCOUNT, "confirm_password": "other"}, "Passwords do not match"),
        ({**ACCOUNT, "name": ""}, "required fields"),
        ({**ACCOUNT, "password": "short", "confirm_password": "short"}, "at least 8"),
        ({**ACCOUNT, "role": "ADMIN"}, "Role must be"),
    ])
    def test_invalid_account(self, db, data, message):
        with pytest.raises(ValidationError, match=message):
            advance(db, None, data)

    def test_email_in_use(self, db, make_user):
        make_user(email="dana@example.com")
        with pytest.raises(ConflictError):
            advance(db, None, {**ACCOUNT, "role": "SHIPPER"})

    def test_token_carries_no_credentials(self, client, db):
        token = _post(client, {**ACCOUNT, "role": "SHIPPER"}).json()["token"]
        assert db.query(User).count() == 0

        # signed, not encrypted: anyone holding the token can read this
        fields = _serializer(SIGNUP_SALT).loads(token)["fields"]
        readable = json.dumps(fields)
        assert "password_hash" not in fields
        assert ACCOUNT["password"] not in readable
        assert "$2b$" not in readable

    @pytest.mark.parametrize("password", [None, "", "wrong-pass1"])
    def test_final_step_needs_the_password_again(self, client, db, password):
        token = _post(client, {**ACCOUNT, "role": "SHIPPER"}).json()["token"]
        r = _post(client, {"user_type": "INDIVIDUAL", "password": password}, token)
        assert r.status_code == 400
        assert "re-enter your password" in r.json()["detail"]
        assert db.query(User).count() == 0

        r = _post(client, {"user_type": "INDIVIDUAL", **PASSWORD}, token)
        assert r.json()["step"] == SignupStep.COMPLETE.value

    def test_signed_up_password_logs_in(self, client):
        token = _post(client, {**ACCOUNT, "role": "CARRIER"}).json()["token"]
        _post(client, {"mc_number": "MC1", "equipment_types": ["reefer"], **PASSWORD}, token)
        r = client.post("/api/auth/login", json={"email": "dana@example.com", **PASSWORD})
        assert r.status_code == 200


def test_tampered_token_rejected(db):
    token = SignupState(SignupStep.PROFILE, {"role": "SHIPPER"}).to_token()
    with pytest.raises(ValidationError, match="Invalid signup token"):
        advance(db, token + "x", {"user_type": "INDIVIDUAL"})


def test_completed_state_cannot_advance(db):
    token = SignupState(SignupStep.COMPLETE, {}).to_token()
    with pytest.raises(ValidationError):
        advance(db, token, {})


def test_login_after_signup(client):
    _post(client, {**ACCOUNT, "role": "BOTH"})
    r = client.post("/api/auth/login", json={"email": "dana@example.com", "password": ACCOUNT["password"]})
    assert r.status_code == 200
    token = r.json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == "dana@example.com"

    bad = client.post("/api/auth/login", json={"email": "dana@example.com", "password": "nope"})
    assert bad.status_code == 401
