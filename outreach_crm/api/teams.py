"""
Team and team membership endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends

from ..core import dao
from ..core.errors import NotFoundError
from .auth import get_current_user_id
from .schemas import TeamCreateRequest, TeamMemberCreateRequest, TeamMemberResponse, TeamResponse

router = APIRouter()


def _get_team_or_404(team_id: int):
    team = dao.get_team(team_id)
    if team is None:
        raise NotFoundError("Team", team_id)
    return team


@router.get("", response_model=List[TeamResponse])
def list_teams_endpoint(user_id: Optional[str] = Depends(get_current_user_id)):
    """Teams owned by the caller; unauthenticated callers see none."""
    if user_id is None:
        return []
    return dao.list_teams_by_owner(user_id)


@router.post("", response_model=TeamResponse, status_code=201)
def create_team_endpoint(request: TeamCreateRequest):
    return dao.create_team(request.name, request.owner_id, request.settings)


@router.get("/{team_id}", response_model=TeamResponse)
def get_team_endpoint(team_id: int):
    return _get_team_or_404(team_id)


@router.get("/{team_id}/members", response_model=List[TeamMemberResponse])
def list_team_members_endpoint(team_id: int):
    _get_team_or_404(team_id)
    return dao.list_team_members(team_id)


@router.post("/{team_id}/members", response_model=TeamMemberResponse, status_code=201)
def add_team_member_endpoint(team_id: int, request: TeamMemberCreateRequest):
    _get_team_or_404(team_id)
    return dao.add_team_member(team_id, request.user_id, request.role)
