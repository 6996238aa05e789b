from fastapi import APIRouter, HTTPException, Depends
from typing import List

from core.database import get_db
from models.template import ActionTemplate, ActionTemplateCreate, ActionTemplateUpdate, TemplateOrder
from models.user import User
from routes.auth import get_current_user, require_role

router = APIRouter(prefix="/action-templates", tags=["Action Templates"])

async def load_template(db, template_id: str) -> ActionTemplate:
    data = await db.action_templates.find_one({"_id": template_id})
    if not data:
        raise HTTPException(status_code=404, detail="Template not found")
    return ActionTemplate(**data)

@router.post("/", response_model=ActionTemplate, status_code=201)
async def create_template(
    template_in: ActionTemplateCreate,
    current_user: User = Depends(require_role("admin")),
    db=Depends(get_db)
):
    """New templates go to the end of the list."""
    last = await db.action_templates.find().sort("order", -1).limit(1).to_list(length=1)
    next_order = last[0]["order"] + 1 if last else 0
    template = ActionTemplate(**template_in.model_dump(), order=next_order)
    await db.action_templates.insert_one(template.model_dump(by_alias=True))
    return template

@router.get("/", response_model=List[ActionTemplate])
async def list_templates(current_user: User = Depends(get_current_user), db=Depends(get_db)):
    templates = await db.action_templates.find().sort("order", 1).to_list(length=1000)
    return [ActionTemplate(**t) for t in templates]

@router.get("/{template_id}", response_model=ActionTemplate)
async def get_template(template_id: str, current_user: User = Depends(get_current_user), db=Depends(get_db)):
    return await load_template(db, template_id)

@router.patch("/{template_id}", response_model=ActionTemplate)
async def update_template(
    template_id: str,
    template_update: ActionTemplateUpdate,
    current_user: User = Depends(require_role("admin")),
    db=Depends(get_db)
):
    """Editing a template never touches tasks it was already applied to."""
    template = await load_template(db, template_id)
    changes = template_update.model_dump(exclude_none=True)
    if changes:
        await db.action_templates.update_one({"_id": template.id}, {"$set": changes})
    return await load_template(db, template.id)

@router.delete("/{template_id}")
async def delete_template(
    template_id: str,
    current_user: User = Depends(require_role("admin")),
    db=Depends(get_db)
):
    result = await db.action_templates.delete_one({"_id": template_id})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Template not found")
    return {"message": "Template deleted"}

@router.put("/order", response_model=List[ActionTemplate])
async def reorder_templates(
    order_in: TemplateOrder,
    current_user: User = Depends(require_role("admin")),
    db=Depends(get_db)
):
    """Set each template's position to its index in `template_ids`."""
    for index, template_id in enumerate(order_in.template_ids):
        await db.action_templates.update_one({"_id": template_id}, {"$set": {"order": index}})
    templates = await db.action_templates.find().sort("order", 1).to_list(length=1000)
    return [ActionTemplate(**t) for t in templates]
