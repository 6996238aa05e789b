import logging
from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Optional

from core.config import settings
from core.database import get_db, paginate
from models.common import Page
from models.user import Role, User, UserCreate, UserRoleUpdate, UserStatusUpdate
from routes.auth import get_current_user, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

async def load_user(db, user_id: str) -> User:
    user_data = await db.users.find_one({"_id": user_id})
    if not user_data:
        raise HTTPException(status_code=404, detail="User not found")
    return User(**user_data)

@router.post("/", response_model=User, status_code=201)
async def create_user(
    user_in: UserCreate,
    current_user: User = Depends(require_role("admin")),
    db=Depends(get_db)
):
    """
    Admin creates a user profile.
    Credentials live with the identity provider; this only stores the profile.
    """
    if await db.users.find_one({"email": user_in.email}):
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = User(full_name=user_in.full_name, email=user_in.email, role=user_in.role)
    await db.users.insert_one(new_user.model_dump(by_alias=True))
    logger.info("User %s created by %s", new_user.id, current_user.id)
    return new_user

@router.get("/", response_model=Page[User])
async def list_users(
    role: Optional[Role] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: User = Depends(require_role("admin", "manager")),
    db=Depends(get_db)
):
    query = {"role": role} if role else {}
    docs, total, total_pages = await paginate(
        lambda: db.users.find(query).sort("full_name", 1), query, db.users, page, limit
    )
    return Page[User](
        data=[User(**u) for u in docs], total=total, total_pages=total_pages, page=page, limit=limit
    )

@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    return await load_user(db, user_id)

@router.patch("/{user_id}/role", response_model=User)
async def update_user_role(
    user_id: str,
    role_in: UserRoleUpdate,
    current_user: User = Depends(require_role("admin")),
    db=Depends(get_db)
):
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot change your own role")
    user = await load_user(db, user_id)
    await db.users.update_one({"_id": user.id}, {"$set": {"role": role_in.role}})
    return await load_user(db, user.id)

@router.patch("/{user_id}/status", response_model=User)
async def update_user_status(
    user_id: str,
    status_in: UserStatusUpdate,
    current_user: User = Depends(require_role("admin")),
    db=Depends(get_db)
):
    """Enable/Disable user"""
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot disable your own account")
    user = await load_user(db, user_id)
    is_active = status_in.status == "active"
    await db.users.update_one(
        {"_id": user.id},
        {"$set": {"status": status_in.status, "is_active": is_active}}
    )
    return await load_user(db, user.id)

@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    current_user: User = Depends(require_role("admin")),
    db=Depends(get_db)
):
    """
    Remove the profile and its notifications.
    Tasks keep their references; they render as "Unknown User".
    """
    if user_id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    result = await db.users.delete_one({"_id": user_id})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="User not found")
    await db.notifications.delete_many({"user_id": user_id})
    return {"message": "User deleted"}
