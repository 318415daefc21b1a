"""
Signup wizard as an explicit state machine.

    ACCOUNT -> PROFILE -> COMPANY -> COMPLETE

The collected fields travel between requests inside a signed, short-lived
token, so the server keeps no wizard state. The token is signed but readable,
so it never carries a credential: only a keyed fingerprint of the password,
checked against the password re-sent on the final step. Each step validates
its own fields before the state advances; the user row is only written on
COMPLETE.

    BOTH                  ACCOUNT -> COMPLETE
    SHIPPER, individual   ACCOUNT -> PROFILE -> COMPLETE
    SHIPPER, company      ACCOUNT -> PROFILE -> COMPANY -> COMPLETE
    CARRIER               ACCOUNT -> PROFILE -> COMPLETE
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from itsdangerous import BadSignature, SignatureExpired, Signer
from sqlalchemy.orm import Session

from freightfloo.core.config import settings
from freightfloo.core.deps import _serializer, hash_password
from freightfloo.core.errors import ConflictError, ValidationError
from freightfloo.models.enums import Role, UserType
from freightfloo.models.user import User
from freightfloo.services.equipment import unknown_equipment_ids

logger = logging.getLogger(__name__)

SIGNUP_SALT = "ff-signup"
PASSWORD_SALT = "ff-signup-password"
MIN_PASSWORD_LENGTH = 8

SELF_SERVICE_ROLES = (Role.SHIPPER.value, Role.CARRIER.value, Role.BOTH.value)

COMPANY_FIELDS = (
    "company_name", "company_website", "company_phone", "company_address",
    "company_city", "company_state", "company_zip_code", "company_country",
)


class SignupStep(str, enum.Enum):
    ACCOUNT = "ACCOUNT"
    PROFILE = "PROFILE"
    COMPANY = "COMPANY"
    COMPLETE = "COMPLETE"


@dataclass
class SignupState:
    step: SignupStep = SignupStep.ACCOUNT
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_token(self) -> str:
        return _serializer(SIGNUP_SALT).dumps({"step": self.step.value, "fields": self.fields})

    @classmethod
    def from_token(cls, token: Optional[str]) -> "SignupState":
        if not token:
            return cls()
        try:
            data = _serializer(SIGNUP_SALT).loads(token, max_age=settings.SIGNUP_TTL_SECONDS)
        except SignatureExpired:
            raise ValidationError("Signup session expired, please start again") from None
        except BadSignature:
            raise ValidationError("Invalid signup token") from None
        return cls(step=SignupStep(data["step"]), fields=data.get("fields") or {})


def _password_signer() -> Signer:
    return Signer(settings.SECRET_KEY, salt=PASSWORD_SALT)


def _password_matches(fields: Dict[str, Any], password: Any) -> bool:
    fingerprint = fields.get("password_check")
    if not isinstance(password, str) or not password or not fingerprint:
        return False
    return _password_signer().verify_signature(password, fingerprint)


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def _account_step(db: Session, state: SignupState, data: Dict[str, Any]) -> SignupStep:
    name = _text(data, "name")
    email = _text(data, "email").lower()
    password = data.get("password")
    if not isinstance(password, str):
        password = ""
    if not name or not email or not password or not data.get("confirm_password"):
        raise ValidationError("Please fill in all required fields")
    if "@" not in email:
        raise ValidationError("Please enter a valid email address")
    if password != data.get("confirm_password"):
        raise ValidationError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    role = _text(data, "role").upper() or Role.SHIPPER.value
    if role not in SELF_SERVICE_ROLES:
        raise ValidationError("Role must be SHIPPER, CARRIER or BOTH")
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("An account with this email already exists")

    state.fields.update({
        "name": name,
        "email": email,
        "password_check": _password_signer().get_signature(password).decode(),
        "role": role,
    })
    return SignupStep.COMPLETE if role == Role.BOTH.value else SignupStep.PROFILE


def _profile_step(state: SignupState, data: Dict[str, Any]) -> SignupStep:
    if state.fields["role"] == Role.CARRIER.value:
        dot_number, mc_number = _text(data, "dot_number"), _text(data, "mc_number")
        if not dot_number and not mc_number:
            raise ValidationError("Please enter either a DOT number or MC number")
        equipment = data.get("equipment_types") or []
        if not isinstance(equipment, list) or not equipment:
            raise ValidationError("Please select at least one equipment type")
        unknown = unknown_equipment_ids(equipment)
        if unknown:
            raise ValidationError("Unknown equipment type", details={"unknown": unknown})
        state.fields.update({
            "dot_number": dot_number or None,
            "mc_number": mc_number or None,
            "equipment_types": list(dict.fromkeys(equipment)),
            "user_type": UserType.COMPANY.value,
        })
        if _text(data, "company_name"):
            state.fields["company_name"] = _text(data, "company_name")
        return SignupStep.COMPLETE

    user_type = _text(data, "user_type").upper() or UserType.INDIVIDUAL.value
    if user_type not in (UserType.INDIVIDUAL.value, UserType.COMPANY.value):
        raise ValidationError("User type must be INDIVIDUAL or COMPANY")
    state.fields["user_type"] = user_type
    return SignupStep.COMPANY if user_type == UserType.COMPANY.value else SignupStep.COMPLETE


def _company_step(state: SignupState, data: Dict[str, Any]) -> SignupStep:
    company = {key: _text(data, key) for key in COMPANY_FIELDS}
    if not company["company_name"] or not company["company_address"] or not company["company_city"]:
        raise ValidationError("Please fill in all required company fields")
    state.fields.update({k: v for k, v in company.items() if v})
    return SignupStep.COMPLETE


def _create_user(db: Session, fields: Dict[str, Any], password: str) -> User:
    if db.query(User).filter(User.email == fields["email"]).first():
        raise ConflictError("An account with this email already exists")
    user = User(
        email=fields["email"],
        password_hash=hash_password(password),
        name=fields["name"],
        role=fields["role"],
        user_type=fields.get("user_type", UserType.INDIVIDUAL.value),
        dot_number=fields.get("dot_number"),
        mc_number=fields.get("mc_number"),
        equipment_types=fields.get("equipment_types", []),
        **{k: fields[k] for k in COMPANY_FIELDS if fields.get(k)},
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s signed up as %s", user.id, user.role)
    return user


def advance(db: Session, token: Optional[str], data: Dict[str, Any]) -> Tuple[SignupState, Optional[User]]:
    """
    Apply one wizard step. Returns the new state, plus the created user once
    the wizard reaches COMPLETE. The step that completes the wizard must
    carry the password again.
    """
    state = SignupState.from_token(token)
    if state.step == SignupStep.ACCOUNT:
        next_step = _account_step(db, state, data)
    elif state.step == SignupStep.PROFILE:
        next_step = _profile_step(state, data)
    elif state.step == SignupStep.COMPANY:
        next_step = _company_step(state, data)
    else:
        raise ValidationError("Signup already completed")

    state.step = next_step
    if next_step == SignupStep.COMPLETE:
        password = data.get("password")
        if not _password_matches(state.fields, password):
            raise ValidationError("Please re-enter your password to finish signing up")
        return state, _create_user(db, state.fields, password)
    return state, None
