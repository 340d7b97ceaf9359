from datetime import datetime
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session
from pharmacy.db.models import RefreshToken, User

def create(db: Session, data: dict) -> User:
    user = User(**data)
    db.add(user)
    db.flush()
    return user

def find_by_email(db: Session, email: str) -> Optional[User]:
    return db.execute(select(User).where(User.email == email)).scalars().first()

def find_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)

def add_refresh_token(db: Session, user: User, jti: str, token_hash: str, expires_at: datetime) -> RefreshToken:
    rt = RefreshToken(user_id=user.id, jti=jti, token_hash=token_hash, expires_at=expires_at, revoked=False)
    db.add(rt)
    db.flush()
    return rt

def find_refresh_token(db: Session, jti: str, email: Optional[str] = None) -> Optional[RefreshToken]:
    stmt = select(RefreshToken).join(User).where(RefreshToken.jti == jti)
    if email is not None:
        stmt = stmt.where(User.email == email)
    return db.execute(stmt).scalars().first()
