from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hardban_lab.database import get_db
from hardban_lab.models import UserDB
from hardban_lab.schemas import RoleUpdate
from hardban_lab.security import require_roles
from hardban_lab.services import users

router = APIRouter(prefix="/api/admin", tags=["admin"])

admin_only = require_roles("admin")


@router.get("/users")
def list_users(db: Session = Depends(get_db), _: UserDB = Depends(admin_only)):
    return {"success": True, "users": users.list_users(db)}


@router.put("/users/{user_id}")
def update_user_role(user_id: int, data: RoleUpdate, db: Session = Depends(get_db),
                     _: UserDB = Depends(admin_only)):
    user = users.update_role(db, user_id, data.role)
    return {"success": True, "user": users.serialize_user(user)}


@router.delete("/users/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), current: UserDB = Depends(admin_only)):
    users.delete_user(db, user_id, current)
    return {"success": True, "message": "User deleted"}
