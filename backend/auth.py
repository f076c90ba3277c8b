"""Email/password accounts and opaque session tokens."""
from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import config
from log import get_logger
from models import AuthSession, User

log = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6
_HASH_SCHEME = "pbkdf2_sha256"


class AuthError(Exception):
    """Sign-up or sign-in was refused."""


@dataclass(frozen=True, slots=True)
class CurrentUser:
    id: str
    email: str


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def hash_password(password: str, *, iterations: int | None = None) -> str:
    iterations = iterations or config.PASSWORD_HASH_ITERATIONS
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{_HASH_SCHEME}${iterations}${_b64(salt)}${_b64(digest)}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        scheme, iterations, salt, expected = encoded.split("$")
    except ValueError:
        return False
    if scheme != _HASH_SCHEME:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), base64.b64decode(salt), int(iterations)
    )
    return hmac.compare_digest(_b64(digest), expected)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def sign_up(db: Session, email: str, password: str) -> CurrentUser:
    email = normalize_email(email)
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise AuthError("Enter a valid email address")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if db.query(User).filter(User.email == email).first() is not None:
        raise AuthError("An account with this email already exists")

    user = User(email=email, password_hash=hash_password(password))
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise AuthError("An account with this email already exists") from None
    log.info("Created account for %s", email)
    return CurrentUser(id=user.id, email=user.email)


def sign_in(db: Session, email: str, password: str) -> str:
    """Check credentials and open a session; returns its token."""
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if user is None or not verify_password(password or "", user.password_hash):
        raise AuthError("Invalid email or password")
    token = secrets.token_urlsafe(32)
    db.add(AuthSession(token=token, user_id=user.id))
    db.commit()
    log.info("Signed in %s", user.email)
    return token


def sign_out(db: Session, token: str | None) -> None:
    if not token:
        return
    try:
        db.query(AuthSession).filter(AuthSession.token == token).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("Error signing out: %s", exc)
        raise AuthError("Error signing out") from exc


def resolve(db: Session, token: str | None) -> CurrentUser | None:
    """The user behind ``token``, or None for a missing or revoked session."""
    if not token:
        return None
    row = (
        db.query(User)
        .join(AuthSession, AuthSession.user_id == User.id)
        .filter(AuthSession.token == token)
        .first()
    )
    if row is None:
        return None
    return CurrentUser(id=row.id, email=row.email)
