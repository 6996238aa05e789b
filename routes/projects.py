import logging
from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional

from core.activity import log_activity
from core.config import settings
from core.database import get_db, paginate
from core.notifications import post_project_message
from core.time_utils import get_current_time
from models.activity import ActivityLog
from models.common import Page
from models.project import (
    Project, ProjectCreate, ProjectMessage, ProjectMessageCreate, ProjectStatus, ProjectUpdate,
)
from models.user import User
from routes.auth import get_current_user, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["Projects"])

async def load_project(db, project_id: str) -> Project:
    data = await db.projects.find_one({"_id": project_id})
    if not data:
        raise HTTPException(status_code=404, detail="Project not found")
    return Project(**data)

def ensure_member(project: Project, user: User):
    if user.role == "admin":
        return
    if user.id not in project.managers and user.id not in project.members:
        raise HTTPException(status_code=403, detail="Not a member of this project")

@router.post("/", response_model=Project, status_code=201)
async def create_project(
    project_in: ProjectCreate,
    current_user: User = Depends(require_role("admin", "manager")),
    db=Depends(get_db)
):
    project = Project(**project_in.model_dump(), created_by=current_user.id)
    if current_user.role == "manager" and current_user.id not in project.managers:
        project.managers.append(current_user.id)
    await db.projects.insert_one(project.model_dump(by_alias=True))
    logger.info("Project %s created by %s", project.id, current_user.id)

    await log_activity(db, ActivityLog(
        user_id=current_user.id,
        user_name=current_user.full_name,
        type="project_created",
        project_id=project.id,
        project_name=project.name
    ))
    return project

@router.get("/", response_model=Page[Project])
async def list_projects(
    status: Optional[ProjectStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Admins see every project; others only the ones they manage or belong to."""
    query = {}
    if status:
        query["status"] = status
    if current_user.role != "admin":
        query["$or"] = [{"managers": current_user.id}, {"members": current_user.id}]

    docs, total, total_pages = await paginate(
        lambda: db.projects.find(query).sort("created_at", -1), query, db.projects, page, limit
    )
    return Page[Project](
        data=[Project(**p) for p in docs], total=total, total_pages=total_pages, page=page, limit=limit
    )

@router.get("/{project_id}", response_model=Project)
async def get_project(project_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    project = await load_project(db, project_id)
    ensure_member(project, current_user)
    return project

@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    project_update: ProjectUpdate,
    current_user: User = Depends(require_role("admin", "manager")),
    db=Depends(get_db)
):
    project = await load_project(db, project_id)
    ensure_member(project, current_user)
    changes = project_update.model_dump(exclude_none=True)
    changes["updated_at"] = get_current_time()
    await db.projects.update_one({"_id": project.id}, {"$set": changes})
    return await load_project(db, project.id)

@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    current_user: User = Depends(require_role("admin")),
    db=Depends(get_db)
):
    """Tasks of the project are left in place, like every other reference."""
    result = await db.projects.delete_one({"_id": project_id})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Project not found")
    await db.project_messages.delete_many({"project_id": project_id})
    return {"message": "Project deleted"}

# --- Chat ---

@router.post("/{project_id}/messages", response_model=ProjectMessage, status_code=201)
async def post_message(
    project_id: str,
    message_in: ProjectMessageCreate,
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    project = await load_project(db, project_id)
    ensure_member(project, current_user)
    message = ProjectMessage(
        project_id=project.id,
        user_id=current_user.id,
        user_name=current_user.full_name,
        content=message_in.content
    )
    return await post_project_message(db, message)

@router.get("/{project_id}/messages", response_model=List[ProjectMessage])
async def list_messages(
    project_id: str,
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db=Depends(get_db)
):
    """Oldest first, the most recent `limit` messages."""
    project = await load_project(db, project_id)
    ensure_member(project, current_user)
    docs = await db.project_messages.find({"project_id": project.id}) \
        .sort("timestamp", -1).limit(limit).to_list(length=limit)
    return [ProjectMessage(**m) for m in reversed(docs)]
