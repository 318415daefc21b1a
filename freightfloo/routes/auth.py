from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from freightfloo.core.config import settings
from freightfloo.core.deps import get_db, require_user, sign_session, verify_password
from freightfloo.core.errors import AuthenticationError
from freightfloo.models.user import User
from freightfloo.schemas.user import LoginRequest, SignupStepRequest, SignupStepResponse, UserResponse
from freightfloo.services import signup

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _set_session(response: Response, user: User) -> str:
    token = sign_session({"uid": user.id, "role": user.role, "email": user.email})
    response.set_cookie(
        settings.SESSION_COOKIE, token, httponly=True, secure=settings.APP_ENV == "production",
        samesite="lax", max_age=settings.SESSION_TTL_SECONDS,
    )
    return token


@router.post("/login")
def login(body: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not user.is_active or not verify_password(body.password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    token = _set_session(response, user)
    return {"token": token, "user": UserResponse.model_validate(user)}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE)
    return {"status": "ok"}


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(require_user)):
    return user


@router.post("/signup", response_model=SignupStepResponse)
def signup_step(body: SignupStepRequest, response: Response, db: Session = Depends(get_db)):
    """
    Advance the signup wizard one step. Send the token from the previous
    response back with the next step's fields; the final step logs the new
    user in.
    """
    state, user = signup.advance(db, body.token, body.data)
    if user:
        _set_session(response, user)
        return {"step": state.step.value, "token": None, "user": UserResponse.model_validate(user)}
    return {"step": state.step.value, "token": state.to_token(), "user": None}
