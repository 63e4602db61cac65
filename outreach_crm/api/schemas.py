"""
Request/response models for the CRM HTTP API.
Payloads use camelCase on the wire; models also accept snake_case names.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..core.schema import (
    ActivityType,
    ProspectStage,
    QCItemType,
    REVIEW_STATUSES,
    TaskPriority,
    TaskStatus,
    TaskType,
    TeamMemberRole,
    TemplateType,
    values_of,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _not_blank(v, name):
    if v is None or not str(v).strip():
        raise ValueError(f'{name} cannot be empty')
    return v


def _one_of(v, valid, name):
    if v not in valid:
        raise ValueError(f'{name} must be one of: {valid}')
    return v


# Teams

class TeamCreateRequest(CamelModel):
    name: str
    owner_id: str
    settings: Optional[Dict[str, Any]] = None

    @field_validator('name', 'owner_id')
    @classmethod
    def must_not_be_empty(cls, v, info):
        return _not_blank(v, to_camel(info.field_name))


class TeamResponse(CamelModel):
    id: int
    name: str
    owner_id: str
    settings: Dict[str, Any]
    created_at: datetime
    updated_at: datetime


class TeamMemberCreateRequest(CamelModel):
    user_id: str
    role: str = TeamMemberRole.VA.value

    @field_validator('user_id')
    @classmethod
    def user_id_must_not_be_empty(cls, v):
        return _not_blank(v, 'userId')

    @field_validator('role')
    @classmethod
    def role_must_be_valid(cls, v):
        return _one_of(v, values_of(TeamMemberRole), 'role')


class TeamMemberResponse(CamelModel):
    id: int
    team_id: int
    user_id: str
    role: str
    created_at: datetime


# Prospects

class ProspectCreateRequest(CamelModel):
    team_id: int
    first_name: str
    last_name: str
    company: str
    title: str
    source: str
    email: Optional[str] = None
    linkedin_url: Optional[str] = None
    twitter_handle: Optional[str] = None
    source_detail: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    custom_fields: Dict[str, Any] = Field(default_factory=dict)
    stage: str = ProspectStage.IDENTIFIED.value
    assigned_to_id: Optional[str] = None
    close_reason: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('first_name', 'last_name', 'company', 'title', 'source')
    @classmethod
    def must_not_be_empty(cls, v, info):
        return _not_blank(v, to_camel(info.field_name))

    @field_validator('stage')
    @classmethod
    def stage_must_be_valid(cls, v):
        return _one_of(v, values_of(ProspectStage), 'stage')


class ProspectUpdateRequest(CamelModel):
    """Partial prospect update. Milestone timestamps are not accepted here."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='forbid')

    team_id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    title: Optional[str] = None
    source: Optional[str] = None
    email: Optional[str] = None
    linkedin_url: Optional[str] = None
    twitter_handle: Optional[str] = None
    source_detail: Optional[str] = None
    tags: Optional[List[str]] = None
    custom_fields: Optional[Dict[str, Any]] = None
    stage: Optional[str] = None
    assigned_to_id: Optional[str] = None
    close_reason: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('team_id', 'first_name', 'last_name', 'company', 'title', 'source',
                     'tags', 'custom_fields', 'stage')
    @classmethod
    def required_fields_not_null(cls, v, info):
        if v is None:
            raise ValueError(f'{to_camel(info.field_name)} cannot be null')
        return v

    @field_validator('stage')
    @classmethod
    def stage_must_be_valid(cls, v):
        return _one_of(v, values_of(ProspectStage), 'stage')


class ProspectResponse(CamelModel):
    id: int
    team_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    linkedin_url: Optional[str] = None
    twitter_handle: Optional[str] = None
    company: str
    title: str
    source: str
    source_detail: Optional[str] = None
    tags: List[str]
    custom_fields: Dict[str, Any]
    stage: str
    assigned_to_id: Optional[str] = None
    warming_started_at: Optional[datetime] = None
    first_touch_sent_at: Optional[datetime] = None
    video_sent_at: Optional[datetime] = None
    call_booked_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    close_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProspectImportRow(CamelModel):
    first_name: str
    last_name: str
    company: str
    title: str
    email: Optional[str] = None
    linkedin_url: Optional[str] = None
    twitter_handle: Optional[str] = None


class ProspectImportRequest(CamelModel):
    team_id: int
    source: str
    prospects: List[ProspectImportRow]

    @field_validator('source')
    @classmethod
    def source_must_not_be_empty(cls, v):
        return _not_blank(v, 'source')


class ProspectImportResponse(BaseModel):
    imported: int
    duplicates: int


# Activities

class ActivityCreateRequest(CamelModel):
    type: str
    details: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('type')
    @classmethod
    def type_must_be_valid(cls, v):
        return _one_of(v, values_of(ActivityType), 'type')


class ActivityResponse(CamelModel):
    id: int
    prospect_id: int
    user_id: str
    type: str
    details: Dict[str, Any]
    created_at: datetime


# Tasks

class TaskCreateRequest(CamelModel):
    team_id: int
    assigned_to_id: str
    type: str
    title: str
    due_date: datetime
    prospect_id: Optional[int] = None
    description: Optional[str] = None
    priority: str = TaskPriority.MEDIUM.value
    status: str = TaskStatus.PENDING.value

    @field_validator('assigned_to_id', 'title')
    @classmethod
    def must_not_be_empty(cls, v, info):
        return _not_blank(v, to_camel(info.field_name))

    @field_validator('type')
    @classmethod
    def type_must_be_valid(cls, v):
        return _one_of(v, values_of(TaskType), 'type')

    @field_validator('priority')
    @classmethod
    def priority_must_be_valid(cls, v):
        return _one_of(v, values_of(TaskPriority), 'priority')

    @field_validator('status')
    @classmethod
    def status_must_be_valid(cls, v):
        return _one_of(v, values_of(TaskStatus), 'status')


class TaskUpdateRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='forbid')

    team_id: Optional[int] = None
    assigned_to_id: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    due_date: Optional[datetime] = None
    prospect_id: Optional[int] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None

    @field_validator('team_id', 'assigned_to_id', 'type', 'title', 'due_date', 'priority', 'status')
    @classmethod
    def required_fields_not_null(cls, v, info):
        if v is None:
            raise ValueError(f'{to_camel(info.field_name)} cannot be null')
        return v

    @field_validator('type')
    @classmethod
    def type_must_be_valid(cls, v):
        return _one_of(v, values_of(TaskType), 'type')

    @field_validator('priority')
    @classmethod
    def priority_must_be_valid(cls, v):
        return _one_of(v, values_of(TaskPriority), 'priority')

    @field_validator('status')
    @classmethod
    def status_must_be_valid(cls, v):
        return _one_of(v, values_of(TaskStatus), 'status')


class TaskResponse(CamelModel):
    id: int
    team_id: int
    prospect_id: Optional[int] = None
    assigned_to_id: str
    type: str
    title: str
    description: Optional[str] = None
    due_date: datetime
    priority: str
    status: str
    completed_at: Optional[datetime] = None
    created_at: datetime


# Templates

class TemplateCreateRequest(CamelModel):
    team_id: int
    name: str
    type: str
    content: str
    created_by_id: str
    is_active: bool = True
    times_used: int = 0
    reply_count: int = 0

    @field_validator('name', 'content', 'created_by_id')
    @classmethod
    def must_not_be_empty(cls, v, info):
        return _not_blank(v, to_camel(info.field_name))

    @field_validator('type')
    @classmethod
    def type_must_be_valid(cls, v):
        return _one_of(v, values_of(TemplateType), 'type')


class TemplateUpdateRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='forbid')

    name: Optional[str] = None
    type: Optional[str] = None
    content: Optional[str] = None
    is_active: Optional[bool] = None
    times_used: Optional[int] = None
    reply_count: Optional[int] = None

    @field_validator('name', 'type', 'content')
    @classmethod
    def required_fields_not_null(cls, v, info):
        return _not_blank(v, to_camel(info.field_name))

    @field_validator('type')
    @classmethod
    def type_must_be_valid(cls, v):
        return _one_of(v, values_of(TemplateType), 'type')


class TemplateResponse(CamelModel):
    id: int
    team_id: int
    name: str
    type: str
    content: str
    is_active: bool
    created_by_id: str
    times_used: int
    reply_count: int
    created_at: datetime
    updated_at: datetime


# QC queue

class QCSubmitRequest(CamelModel):
    prospect_id: int
    submitted_by_id: str
    type: str
    draft_content: str
    template_id: Optional[int] = None

    @field_validator('submitted_by_id', 'draft_content')
    @classmethod
    def must_not_be_empty(cls, v, info):
        return _not_blank(v, to_camel(info.field_name))

    @field_validator('type')
    @classmethod
    def type_must_be_valid(cls, v):
        return _one_of(v, values_of(QCItemType), 'type')


class QCReviewRequest(CamelModel):
    status: str
    reviewed_by_id: str
    feedback: Optional[str] = None

    @field_validator('status')
    @classmethod
    def status_must_be_review_decision(cls, v):
        return _one_of(v, REVIEW_STATUSES, 'status')

    @field_validator('reviewed_by_id')
    @classmethod
    def reviewer_must_not_be_empty(cls, v):
        return _not_blank(v, 'reviewedById')


class QCItemResponse(CamelModel):
    id: int
    prospect_id: int
    template_id: Optional[int] = None
    submitted_by_id: str
    reviewed_by_id: Optional[str] = None
    type: str
    draft_content: str
    status: str
    feedback: Optional[str] = None
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None


# Analytics / health

class AnalyticsOverviewResponse(BaseModel):
    prospectsByStage: Dict[str, int]
    tasksDueToday: int
    qcPending: int
    replyRate: float


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
