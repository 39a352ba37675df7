from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hardban_lab.database import get_db
from hardban_lab.models import UserDB
from hardban_lab.schemas import LoginRequest, RefreshRequest, RegisterRequest
from hardban_lab.security import get_current_user
from hardban_lab.services import users

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    user = users.register(db, data)
    return {"success": True, "user": users.serialize_user(user)}


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    result = users.login(db, data.username, data.password)
    return {"success": True, **result}


@router.post("/refresh")
def refresh(data: RefreshRequest, db: Session = Depends(get_db)):
    return {"success": True, "token": users.refresh(db, data.refresh_token)}


@router.get("/me")
def me(user: UserDB = Depends(get_current_user)):
    return {"success": True, "user": users.serialize_user(user)}
