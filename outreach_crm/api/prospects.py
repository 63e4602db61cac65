"""
Prospect endpoints: CRUD, pipeline updates, bulk import and the activity trail.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from ..core import dao
from ..core.errors import NotFoundError, ValidationError
from ..core.importer import import_prospects
from ..core.pipeline import apply_prospect_update
from ..core.schema import ProspectStage, values_of
from ..util.logging import audit_event
from .auth import get_current_user_id, require_user_id
from .schemas import (
    ActivityCreateRequest,
    ActivityResponse,
    ProspectCreateRequest,
    ProspectImportRequest,
    ProspectImportResponse,
    ProspectResponse,
    ProspectUpdateRequest,
)

router = APIRouter()


def _get_prospect_or_404(prospect_id: int):
    prospect = dao.get_prospect(prospect_id)
    if prospect is None:
        raise NotFoundError("Prospect", prospect_id)
    return prospect


@router.get("", response_model=List[ProspectResponse])
def list_prospects_endpoint(
    team_id: int = Query(..., alias="teamId"),
    stage: Optional[str] = None,
    assigned_to_id: Optional[str] = Query(None, alias="assignedToId"),
):
    if stage and stage not in values_of(ProspectStage):
        raise ValidationError(f"stage must be one of: {values_of(ProspectStage)}", field="stage")
    return dao.list_prospects(team_id, stage=stage, assigned_to_id=assigned_to_id)


@router.post("", response_model=ProspectResponse, status_code=201)
def create_prospect_endpoint(request: ProspectCreateRequest):
    return dao.create_prospect(request.model_dump())


# Declared before /{prospect_id} routes
@router.post("/import", response_model=ProspectImportResponse, status_code=201)
def import_prospects_endpoint(request: ProspectImportRequest, user_id: str = Depends(require_user_id)):
    """Bulk import; rows matching a known email or LinkedIn URL are skipped."""
    rows = [row.model_dump() for row in request.prospects]
    result = import_prospects(request.team_id, request.source, rows, user_id)
    return result.to_dict()


@router.get("/{prospect_id}", response_model=ProspectResponse)
def get_prospect_endpoint(prospect_id: int):
    return _get_prospect_or_404(prospect_id)


@router.patch("/{prospect_id}", response_model=ProspectResponse)
def update_prospect_endpoint(prospect_id: int, request: ProspectUpdateRequest,
                             user_id: Optional[str] = Depends(get_current_user_id)):
    """Partial update. A stage change is recorded in the activity trail."""
    patch = request.model_dump(exclude_unset=True)
    return apply_prospect_update(prospect_id, patch, acting_user_id=user_id)


@router.delete("/{prospect_id}", status_code=204)
def delete_prospect_endpoint(prospect_id: int, user_id: Optional[str] = Depends(get_current_user_id)):
    dao.delete_prospect(prospect_id)
    audit_event("prospect.delete", {"prospect_id": prospect_id, "actor": user_id})
    return Response(status_code=204)


@router.get("/{prospect_id}/activities", response_model=List[ActivityResponse])
def list_activities_endpoint(prospect_id: int):
    _get_prospect_or_404(prospect_id)
    return dao.list_activities(prospect_id)


@router.post("/{prospect_id}/activities", response_model=ActivityResponse, status_code=201)
def create_activity_endpoint(prospect_id: int, request: ActivityCreateRequest,
                             user_id: str = Depends(require_user_id)):
    """Record a manual activity (a note, a profile view...) by the caller."""
    _get_prospect_or_404(prospect_id)
    activity = dao.create_activity(prospect_id, user_id, request.type, request.details)
    audit_event("activity.create", {"prospect_id": prospect_id, "activity_id": activity.id, "actor": user_id},
                {"type": request.type, **request.details})
    return activity
