from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pharmacy.api.deps import get_db
from pharmacy.api.v1.schemas import (
    RegisterPayload,
    LoginPayload,
    LoginResponse,
    TokenPair,
    RefreshRequest,
    UserRead,
)
from pharmacy.core.sanitize import sanitize_input
from pharmacy.services import auth as auth_service

router = APIRouter()  # main.py mounts at /api/v1/auth


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterPayload, db: Session = Depends(get_db)) -> Any:
    return auth_service.register(
        db,
        name=sanitize_input(payload.name),
        email=str(payload.email),
        password=payload.password,
        role=payload.user_type,
    )


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginPayload, db: Session = Depends(get_db)) -> Any:
    user, access, refresh = auth_service.login(db, str(payload.email), payload.password)
    return LoginResponse(access_token=access, refresh_token=refresh, user=UserRead.model_validate(user))


@router.post("/refresh", response_model=TokenPair)
def refresh_token(payload: RefreshRequest, db: Session = Depends(get_db)) -> TokenPair:
    access, refresh = auth_service.refresh(db, payload.refresh_token)
    return TokenPair(access_token=access, refresh_token=refresh)


@router.post("/logout", status_code=status.HTTP_200_OK)
def logout(payload: RefreshRequest, db: Session = Depends(get_db)) -> dict:
    auth_service.logout(db, payload.refresh_token)
    return {"status": "ok"}
