"""
Shared dependencies for routes: db engine, session, auth helpers.
Import these in route modules so main.py stays minimal.
"""
from typing import Dict, Generator, Optional

import bcrypt as _bcrypt
from fastapi import Depends, HTTPException, Request, status
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from freightfloo.core.capabilities import RoleCapabilities, capabilities_for
from freightfloo.core.config import settings
from freightfloo.core.errors import AuthenticationError, AuthorizationError
from freightfloo.models.user import User

engine = create_engine(settings.DATABASE_URL, echo=False, future=True) if settings.DATABASE_URL else None
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine) if engine else None


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session for the ORM."""
    if not SessionLocal:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database not configured")
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _serializer(salt: str = "ff-session") -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.SECRET_KEY, salt=salt)


def sign_session(data: Dict) -> str:
    return _serializer().dumps(data)


def read_session(token: Optional[str]) -> Optional[Dict]:
    if not token:
        return None
    try:
        return _serializer().loads(token, max_age=settings.SESSION_TTL_SECONDS)
    except (BadSignature, SignatureExpired):
        return None


def hash_password(plain: str) -> str:
    """Uses bcrypt directly (passlib incompatible with bcrypt 4.1+)."""
    return _bcrypt.hashpw(plain.encode("utf-8"), _bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return _bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def _session_token(request: Request) -> Optional[str]:
    # Browsers send the cookie; API clients may send the same token as a bearer header.
    auth = request.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return request.cookies.get(settings.SESSION_COOKIE)


def current_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    data = read_session(_session_token(request))
    if not data:
        return None
    user = db.get(User, data.get("uid"))
    if not user or not user.is_active:
        return None
    return user


def require_user(user: Optional[User] = Depends(current_user)) -> User:
    if not user:
        raise AuthenticationError("Authentication required")
    return user


def get_capabilities(user: User = Depends(require_user)) -> RoleCapabilities:
    return capabilities_for(user.role)


def require_capability(name: str):
    """
    Dependency factory: resolve the caller's role capabilities once and
    require one flag, e.g. Depends(require_capability("can_bid")).
    """
    def _check(user: User = Depends(require_user)) -> User:
        caps = capabilities_for(user.role)
        if not getattr(caps, name, False):
            raise AuthorizationError(f"{caps.label} accounts cannot perform this action")
        return user

    return _check


def require_admin(user: User = Depends(require_capability("is_admin"))) -> User:
    return user
