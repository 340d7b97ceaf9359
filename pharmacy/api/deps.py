from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session
from pharmacy.core.auth import get_current_identity
from pharmacy.core.policy import can
from pharmacy.db.session import SessionLocal
from pharmacy.db.models import User

def get_db():
    db = SessionLocal()
    try: yield db
    finally: db.close()

def get_current_user(identity: dict = Depends(get_current_identity), db: Session = Depends(get_db)) -> User:
    user = db.get(User, identity.get('uid')) if identity.get('uid') else None
    if not user or user.email != identity.get('sub'):
        raise HTTPException(status_code=401, detail='User not found')
    return user

def require_permission(action: str, resource: object):
    """Dependency factory for checks that need no loaded resource, e.g. ``("create", Product)``."""
    def _checker(user: User = Depends(get_current_user)):
        if not can(user, action, resource):
            raise HTTPException(status_code=403, detail='Forbidden')
        return user
    return _checker
