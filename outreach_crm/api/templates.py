"""
Message template endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from ..core import dao
from ..core.errors import NotFoundError, ValidationError
from ..core.schema import TemplateType, values_of
from ..util.logging import audit_event
from .auth import get_current_user_id
from .schemas import TemplateCreateRequest, TemplateResponse, TemplateUpdateRequest

router = APIRouter()


@router.get("", response_model=List[TemplateResponse])
def list_templates_endpoint(team_id: int = Query(..., alias="teamId"), type: Optional[str] = None):
    if type and type not in values_of(TemplateType):
        raise ValidationError(f"type must be one of: {values_of(TemplateType)}", field="type")
    return dao.list_templates(team_id, type)


@router.post("", response_model=TemplateResponse, status_code=201)
def create_template_endpoint(request: TemplateCreateRequest):
    return dao.create_template(request.model_dump())


@router.get("/{template_id}", response_model=TemplateResponse)
def get_template_endpoint(template_id: int):
    template = dao.get_template(template_id)
    if template is None:
        raise NotFoundError("Template", template_id)
    return template


@router.patch("/{template_id}", response_model=TemplateResponse)
def update_template_endpoint(template_id: int, request: TemplateUpdateRequest):
    return dao.update_template(template_id, request.model_dump(exclude_unset=True))


@router.delete("/{template_id}", status_code=204)
def delete_template_endpoint(template_id: int, user_id: Optional[str] = Depends(get_current_user_id)):
    dao.delete_template(template_id)
    audit_event("template.delete", {"template_id": template_id, "actor": user_id})
    return Response(status_code=204)
