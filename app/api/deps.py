# app/api/deps.py
from fastapi import Header, HTTPException

from app.data.database import SessionLocal
from app.data.gateway import StorageGateway


def get_gateway() -> StorageGateway:
    return StorageGateway(SessionLocal)


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    #user id ustawia middleware auth przed nami
    if not x_user_id:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return x_user_id
