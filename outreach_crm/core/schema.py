"""
Domain records and enumerations for the outreach CRM.
Rows come out of SQLite as sqlite3.Row and are turned into typed records here.
"""

import json
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ProspectStage(str, Enum):
    IDENTIFIED = 'IDENTIFIED'
    WARMING = 'WARMING'
    FIRST_TOUCH_READY = 'FIRST_TOUCH_READY'
    FIRST_TOUCH_SENT = 'FIRST_TOUCH_SENT'
    VIDEO_READY = 'VIDEO_READY'
    VIDEO_SENT = 'VIDEO_SENT'
    CALL_BOOKED = 'CALL_BOOKED'
    WON = 'WON'
    LOST = 'LOST'
    UNRESPONSIVE = 'UNRESPONSIVE'


TERMINAL_STAGES = frozenset({ProspectStage.WON, ProspectStage.LOST, ProspectStage.UNRESPONSIVE})


class ActivityType(str, Enum):
    PROFILE_VIEW = 'PROFILE_VIEW'
    CONTENT_LIKE = 'CONTENT_LIKE'
    CONTENT_COMMENT = 'CONTENT_COMMENT'
    CONNECTION_SENT = 'CONNECTION_SENT'
    CONNECTION_ACCEPTED = 'CONNECTION_ACCEPTED'
    FIRST_TOUCH_SENT = 'FIRST_TOUCH_SENT'
    FIRST_TOUCH_REPLIED = 'FIRST_TOUCH_REPLIED'
    VIDEO_SENT = 'VIDEO_SENT'
    VIDEO_VIEWED = 'VIDEO_VIEWED'
    VIDEO_REPLIED = 'VIDEO_REPLIED'
    CALL_SCHEDULED = 'CALL_SCHEDULED'
    CALL_COMPLETED = 'CALL_COMPLETED'
    NOTE_ADDED = 'NOTE_ADDED'
    STAGE_CHANGED = 'STAGE_CHANGED'


class TeamMemberRole(str, Enum):
    ADMIN = 'ADMIN'
    MANAGER = 'MANAGER'
    REP = 'REP'
    VA = 'VA'


class TemplateType(str, Enum):
    FIRST_TOUCH = 'FIRST_TOUCH'
    VIDEO_SCRIPT = 'VIDEO_SCRIPT'
    FOLLOW_UP = 'FOLLOW_UP'
    CONNECTION_REQUEST = 'CONNECTION_REQUEST'


class QCItemType(str, Enum):
    FIRST_TOUCH = 'FIRST_TOUCH'
    VIDEO = 'VIDEO'
    FOLLOW_UP = 'FOLLOW_UP'


class QCStatus(str, Enum):
    PENDING = 'PENDING'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'
    REVISION_REQUESTED = 'REVISION_REQUESTED'


REVIEW_STATUSES = [QCStatus.APPROVED.value, QCStatus.REJECTED.value, QCStatus.REVISION_REQUESTED.value]


class TaskType(str, Enum):
    PROFILE_VIEW = 'PROFILE_VIEW'
    ENGAGE_CONTENT = 'ENGAGE_CONTENT'
    SEND_CONNECTION = 'SEND_CONNECTION'
    SEND_FIRST_TOUCH = 'SEND_FIRST_TOUCH'
    RECORD_VIDEO = 'RECORD_VIDEO'
    SEND_VIDEO = 'SEND_VIDEO'
    FOLLOW_UP = 'FOLLOW_UP'
    CUSTOM = 'CUSTOM'


class TaskPriority(str, Enum):
    LOW = 'LOW'
    MEDIUM = 'MEDIUM'
    HIGH = 'HIGH'
    URGENT = 'URGENT'


class TaskStatus(str, Enum):
    PENDING = 'PENDING'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'
    SKIPPED = 'SKIPPED'


DEFAULT_TEAM_SETTINGS = {
    "warmingPeriodHours": 36,
    "firstTouchToVideoHours": 72,
    "staleThresholdDays": 14,
    "qcEnabled": True,
}


def values_of(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as a fixed-width UTC ISO string (sortable as text)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec='microseconds')


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _load_json(value: Optional[str], default):
    if value is None or value == '':
        return default
    return json.loads(value)


@dataclass
class Team:
    id: int
    name: str
    owner_id: str
    settings: Dict[str, Any]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> 'Team':
        return cls(
            id=row['id'],
            name=row['name'],
            owner_id=row['owner_id'],
            settings=_load_json(row['settings'], dict(DEFAULT_TEAM_SETTINGS)),
            created_at=from_db_timestamp(row['created_at']),
            updated_at=from_db_timestamp(row['updated_at'])
        )


@dataclass
class TeamMember:
    id: int
    team_id: int
    user_id: str
    role: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> 'TeamMember':
        return cls(
            id=row['id'],
            team_id=row['team_id'],
            user_id=row['user_id'],
            role=row['role'],
            created_at=from_db_timestamp(row['created_at'])
        )


# Prospect columns holding timestamps stamped by the pipeline
DERIVED_TIMESTAMP_FIELDS = [
    'warming_started_at',
    'first_touch_sent_at',
    'video_sent_at',
    'call_booked_at',
    'closed_at',
]


@dataclass
class Prospect:
    id: int
    team_id: int
    first_name: str
    last_name: str
    company: str
    title: str
    source: str
    stage: str
    created_at: datetime
    updated_at: datetime
    email: Optional[str] = None
    linkedin_url: Optional[str] = None
    twitter_handle: Optional[str] = None
    source_detail: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    custom_fields: Dict[str, Any] = field(default_factory=dict)
    assigned_to_id: Optional[str] = None
    warming_started_at: Optional[datetime] = None
    first_touch_sent_at: Optional[datetime] = None
    video_sent_at: Optional[datetime] = None
    call_booked_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    close_reason: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> 'Prospect':
        return cls(
            id=row['id'],
            team_id=row['team_id'],
            first_name=row['first_name'],
            last_name=row['last_name'],
            company=row['company'],
            title=row['title'],
            source=row['source'],
            stage=row['stage'],
            created_at=from_db_timestamp(row['created_at']),
            updated_at=from_db_timestamp(row['updated_at']),
            email=row['email'],
            linkedin_url=row['linkedin_url'],
            twitter_handle=row['twitter_handle'],
            source_detail=row['source_detail'],
            tags=_load_json(row['tags'], []),
            custom_fields=_load_json(row['custom_fields'], {}),
            assigned_to_id=row['assigned_to_id'],
            warming_started_at=from_db_timestamp(row['warming_started_at']),
            first_touch_sent_at=from_db_timestamp(row['first_touch_sent_at']),
            video_sent_at=from_db_timestamp(row['video_sent_at']),
            call_booked_at=from_db_timestamp(row['call_booked_at']),
            closed_at=from_db_timestamp(row['closed_at']),
            close_reason=row['close_reason'],
            notes=row['notes']
        )


@dataclass
class Activity:
    id: int
    prospect_id: int
    user_id: str
    type: str
    details: Dict[str, Any]
    created_at: datetime

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> 'Activity':
        return cls(
            id=row['id'],
            prospect_id=row['prospect_id'],
            user_id=row['user_id'],
            type=row['type'],
            details=_load_json(row['details'], {}),
            created_at=from_db_timestamp(row['created_at'])
        )


@dataclass
class Template:
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

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> 'Template':
        return cls(
            id=row['id'],
            team_id=row['team_id'],
            name=row['name'],
            type=row['type'],
            content=row['content'],
            is_active=bool(row['is_active']),
            created_by_id=row['created_by_id'],
            times_used=row['times_used'] or 0,
            reply_count=row['reply_count'] or 0,
            created_at=from_db_timestamp(row['created_at']),
            updated_at=from_db_timestamp(row['updated_at'])
        )


@dataclass
class QCQueueItem:
    id: int
    prospect_id: int
    submitted_by_id: str
    type: str
    draft_content: str
    status: str
    submitted_at: datetime
    template_id: Optional[int] = None
    reviewed_by_id: Optional[str] = None
    feedback: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> 'QCQueueItem':
        return cls(
            id=row['id'],
            prospect_id=row['prospect_id'],
            submitted_by_id=row['submitted_by_id'],
            type=row['type'],
            draft_content=row['draft_content'],
            status=row['status'],
            submitted_at=from_db_timestamp(row['submitted_at']),
            template_id=row['template_id'],
            reviewed_by_id=row['reviewed_by_id'],
            feedback=row['feedback'],
            reviewed_at=from_db_timestamp(row['reviewed_at'])
        )


@dataclass
class Task:
    id: int
    team_id: int
    assigned_to_id: str
    type: str
    title: str
    due_date: datetime
    priority: str
    status: str
    created_at: datetime
    prospect_id: Optional[int] = None
    description: Optional[str] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> 'Task':
        return cls(
            id=row['id'],
            team_id=row['team_id'],
            assigned_to_id=row['assigned_to_id'],
            type=row['type'],
            title=row['title'],
            due_date=from_db_timestamp(row['due_date']),
            priority=row['priority'],
            status=row['status'],
            created_at=from_db_timestamp(row['created_at']),
            prospect_id=row['prospect_id'],
            description=row['description'],
            completed_at=from_db_timestamp(row['completed_at'])
        )
