import logging
from typing import Tuple
from sqlalchemy.orm import Session
from pharmacy.core.errors import AuthenticationError, ConflictError
from pharmacy.db.models import User, UserRole
from pharmacy.db.session import unit_of_work
from pharmacy.repositories import users as user_repo
from pharmacy.security.utils import (
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    token_sha256,
    now_utc,
    decode_token,
)

logger = logging.getLogger(__name__)


def _issue_tokens(db: Session, user: User) -> Tuple[str, str]:
    access, _ = create_access_token(user.email, user.role.value, user.id)
    refresh, jti, exp = create_refresh_token(user.email)
    user_repo.add_refresh_token(db, user, jti, token_sha256(refresh), exp)
    return access, refresh


def register(db: Session, name: str, email: str, password: str, role: UserRole = UserRole.CUSTOMER) -> User:
    if user_repo.find_by_email(db, email):
        raise ConflictError("Email already registered")
    with unit_of_work(db):
        user = user_repo.create(db, {
            'name': name,
            'email': email,
            'password_hash': hash_password(password),
            'role': role,
        })
    logger.info("User %s registered", user.id)
    return user


def login(db: Session, email: str, password: str) -> Tuple[User, str, str]:
    user = user_repo.find_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.warning("Invalid login attempt for %s", email)
        raise AuthenticationError("Invalid credentials")
    with unit_of_work(db):
        access, refresh = _issue_tokens(db, user)
    logger.info("User %s logged in", user.id)
    return user, access, refresh


def _refresh_claims(token: str) -> dict:
    try:
        claims = decode_token(token)
    except Exception:
        raise AuthenticationError("Invalid refresh token")
    if claims.get("type") != "refresh" or not claims.get("jti"):
        raise AuthenticationError("Invalid refresh token")
    return claims


def refresh(db: Session, token: str) -> Tuple[str, str]:
    """Rotate a refresh token: revoke the presented one, issue a new pair."""
    claims = _refresh_claims(token)
    rt = user_repo.find_refresh_token(db, claims["jti"], email=claims.get("sub"))
    if not rt or rt.revoked or rt.expires_at < now_utc() or rt.token_hash != token_sha256(token):
        raise AuthenticationError("Refresh token not valid")
    with unit_of_work(db):
        rt.revoked = True
        access, new_refresh = _issue_tokens(db, rt.user)
    return access, new_refresh


def logout(db: Session, token: str) -> None:
    claims = _refresh_claims(token)
    rt = user_repo.find_refresh_token(db, claims["jti"])
    if rt and not rt.revoked:
        with unit_of_work(db):
            rt.revoked = True
        logger.info("User %s logged out", rt.user_id)
