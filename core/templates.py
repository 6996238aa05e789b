from typing import List

from models.common import new_id
from models.task import Action
from models.template import ActionTemplate

def instantiate(template: ActionTemplate) -> List[Action]:
    """
    Fresh, incomplete actions copied from the template's elements.
    Every call yields new ids; the template itself is never modified.
    """
    return [
        Action(
            id=new_id(),
            title=element.title,
            description=element.description,
            type=element.type,
            completed=False,
            completed_at=None,
            completed_by=None,
            data=None,
        )
        for element in template.elements
    ]

def apply_template(template: ActionTemplate, existing: List[Action]) -> List[Action]:
    """Appends a copy of the template after the existing actions. No deduplication."""
    return [a.model_copy(deep=True) for a in existing] + instantiate(template)
