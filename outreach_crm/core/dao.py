"""
Entity store for the outreach CRM.
Thin create/get/list/update/delete functions over the SQLite tables. Every
function accepts an optional connection so a caller can group several writes
into one transaction (see db.transaction).
"""

import json
import sqlite3
from datetime import datetime
from enum import Enum
from functools import wraps
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from .db import get_db, transaction
from .errors import InternalError, NotFoundError, ValidationError
from .schema import (
    Activity,
    DEFAULT_TEAM_SETTINGS,
    Prospect,
    ProspectStage,
    QCQueueItem,
    QCStatus,
    Task,
    TaskPriority,
    TaskStatus,
    Team,
    TeamMember,
    TeamMemberRole,
    Template,
    to_db_timestamp,
    utcnow,
)
from ..util.logging import logger

# Writable columns per table; keys outside these sets never reach SQL
TEAM_COLUMNS = {'name', 'owner_id', 'settings', 'created_at', 'updated_at'}
TEAM_MEMBER_COLUMNS = {'team_id', 'user_id', 'role', 'created_at'}
PROSPECT_COLUMNS = {
    'team_id', 'first_name', 'last_name', 'email', 'linkedin_url', 'twitter_handle',
    'company', 'title', 'source', 'source_detail', 'tags', 'custom_fields', 'stage',
    'assigned_to_id', 'warming_started_at', 'first_touch_sent_at', 'video_sent_at',
    'call_booked_at', 'closed_at', 'close_reason', 'notes', 'created_at', 'updated_at',
}
ACTIVITY_COLUMNS = {'prospect_id', 'user_id', 'type', 'details', 'created_at'}
TEMPLATE_COLUMNS = {
    'team_id', 'name', 'type', 'content', 'is_active', 'created_by_id',
    'times_used', 'reply_count', 'created_at', 'updated_at',
}
QC_COLUMNS = {
    'prospect_id', 'template_id', 'submitted_by_id', 'reviewed_by_id', 'type',
    'draft_content', 'status', 'feedback', 'submitted_at', 'reviewed_at',
}
TASK_COLUMNS = {
    'team_id', 'prospect_id', 'assigned_to_id', 'type', 'title', 'description',
    'due_date', 'priority', 'status', 'completed_at', 'created_at',
}


def _storage_errors(func):
    """Translate sqlite failures into InternalError; domain errors pass through."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except sqlite3.IntegrityError as e:
            logger.error(f"Integrity error during {func.__name__}: {e}")
            raise ValidationError(f"Constraint violated: {e}") from e
        except sqlite3.Error as e:
            logger.error(f"Database error during {func.__name__}: {e}")
            raise InternalError(f"Storage failure in {func.__name__}") from e
    return wrapper


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_db_timestamp(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def _checked(fields: Dict[str, Any], allowed: Set[str], table: str) -> Dict[str, Any]:
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(f"Unknown {table} field(s): {', '.join(sorted(unknown))}")
    return {k: _encode(v) for k, v in fields.items()}


def _insert(conn: sqlite3.Connection, table: str, fields: Dict[str, Any]) -> int:
    columns = ', '.join(fields)
    placeholders = ', '.join('?' for _ in fields)
    cursor = conn.execute(
        f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
        tuple(fields.values())
    )
    return cursor.lastrowid


def _update(conn: sqlite3.Connection, table: str, row_id: int, fields: Dict[str, Any]) -> int:
    if not fields:
        cursor = conn.execute(f"SELECT COUNT(*) FROM {table} WHERE id = ?", (row_id,))
        return cursor.fetchone()[0]
    assignments = ', '.join(f"{column} = ?" for column in fields)
    cursor = conn.execute(
        f"UPDATE {table} SET {assignments} WHERE id = ?",
        tuple(fields.values()) + (row_id,)
    )
    return cursor.rowcount


def _fetch_one(conn: sqlite3.Connection, table: str, row_id: int) -> Optional[sqlite3.Row]:
    cursor = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,))
    return cursor.fetchone()


# Teams

@_storage_errors
def create_team(name: str, owner_id: str, settings: Optional[Dict[str, Any]] = None,
                conn: Optional[sqlite3.Connection] = None) -> Team:
    now = utcnow()
    fields = _checked({
        'name': name,
        'owner_id': owner_id,
        'settings': settings if settings is not None else dict(DEFAULT_TEAM_SETTINGS),
        'created_at': now,
        'updated_at': now,
    }, TEAM_COLUMNS, 'team')
    with transaction(conn) as tx:
        team_id = _insert(tx, 'teams', fields)
        team = Team.from_row(_fetch_one(tx, 'teams', team_id))
    logger.log_entity_write("team", "create", team.id)
    return team


@_storage_errors
def get_team(team_id: int) -> Optional[Team]:
    with get_db() as conn:
        row = _fetch_one(conn, 'teams', team_id)
        return Team.from_row(row) if row else None


@_storage_errors
def list_teams_by_owner(owner_id: str) -> List[Team]:
    # Ownership only; membership-based visibility is not modelled yet
    with get_db() as conn:
        cursor = conn.execute(
            "SELECT * FROM teams WHERE owner_id = ? ORDER BY created_at", (owner_id,)
        )
        return [Team.from_row(row) for row in cursor.fetchall()]


# Team members

@_storage_errors
def add_team_member(team_id: int, user_id: str, role: str = TeamMemberRole.VA.value,
                    conn: Optional[sqlite3.Connection] = None) -> TeamMember:
    fields = _checked({
        'team_id': team_id,
        'user_id': user_id,
        'role': role,
        'created_at': utcnow(),
    }, TEAM_MEMBER_COLUMNS, 'team member')
    try:
        with transaction(conn) as tx:
            member_id = _insert(tx, 'team_members', fields)
            member = TeamMember.from_row(_fetch_one(tx, 'team_members', member_id))
    except sqlite3.IntegrityError as e:
        # (team_id, user_id) is unique
        raise ValidationError(f"User {user_id} is already a member of team {team_id}", field="userId") from e
    logger.log_entity_write("team_member", "create", member.id)
    return member


@_storage_errors
def list_team_members(team_id: int) -> List[TeamMember]:
    with get_db() as conn:
        cursor = conn.execute(
            "SELECT * FROM team_members WHERE team_id = ? ORDER BY created_at", (team_id,)
        )
        return [TeamMember.from_row(row) for row in cursor.fetchall()]


# Prospects

def _prospect_insert_fields(data: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    fields = dict(data)
    fields.setdefault('stage', ProspectStage.IDENTIFIED.value)
    fields.setdefault('tags', [])
    fields.setdefault('custom_fields', {})
    fields['created_at'] = now
    fields['updated_at'] = now
    return _checked(fields, PROSPECT_COLUMNS, 'prospect')


@_storage_errors
def create_prospect(data: Dict[str, Any], conn: Optional[sqlite3.Connection] = None) -> Prospect:
    fields = _prospect_insert_fields(data, utcnow())
    with transaction(conn) as tx:
        prospect_id = _insert(tx, 'prospects', fields)
        prospect = Prospect.from_row(_fetch_one(tx, 'prospects', prospect_id))
    logger.log_entity_write("prospect", "create", prospect.id)
    return prospect


@_storage_errors
def create_prospects_bulk(rows: Iterable[Dict[str, Any]],
                          conn: Optional[sqlite3.Connection] = None) -> List[Prospect]:
    now = utcnow()
    created = []
    with transaction(conn) as tx:
        for data in rows:
            prospect_id = _insert(tx, 'prospects', _prospect_insert_fields(data, now))
            created.append(Prospect.from_row(_fetch_one(tx, 'prospects', prospect_id)))
    return created


@_storage_errors
def get_prospect(prospect_id: int, conn: Optional[sqlite3.Connection] = None) -> Optional[Prospect]:
    if conn is not None:
        row = _fetch_one(conn, 'prospects', prospect_id)
        return Prospect.from_row(row) if row else None
    with get_db() as new_conn:
        row = _fetch_one(new_conn, 'prospects', prospect_id)
        return Prospect.from_row(row) if row else None


@_storage_errors
def list_prospects(team_id: int, stage: Optional[str] = None,
                   assigned_to_id: Optional[str] = None) -> List[Prospect]:
    query = "SELECT * FROM prospects WHERE team_id = ?"
    params: List[Any] = [team_id]
    if stage:
        query += " AND stage = ?"
        params.append(stage)
    if assigned_to_id:
        query += " AND assigned_to_id = ?"
        params.append(assigned_to_id)
    query += " ORDER BY updated_at DESC, id DESC"

    with get_db() as conn:
        cursor = conn.execute(query, params)
        return [Prospect.from_row(row) for row in cursor.fetchall()]


@_storage_errors
def find_prospect_identities(team_id: int) -> Tuple[Set[str], Set[str]]:
    """Lower-cased emails and LinkedIn URLs already present in a team."""
    with get_db() as conn:
        cursor = conn.execute(
            "SELECT email, linkedin_url FROM prospects WHERE team_id = ?", (team_id,)
        )
        emails, linkedin_urls = set(), set()
        for row in cursor.fetchall():
            if row['email']:
                emails.add(row['email'].strip().lower())
            if row['linkedin_url']:
                linkedin_urls.add(row['linkedin_url'].strip().lower())
        return emails, linkedin_urls


@_storage_errors
def update_prospect(prospect_id: int, data: Dict[str, Any],
                    conn: Optional[sqlite3.Connection] = None) -> Prospect:
    """Overwrite the given fields and refresh updated_at."""
    fields = dict(data)
    fields['updated_at'] = utcnow()
    fields = _checked(fields, PROSPECT_COLUMNS, 'prospect')
    with transaction(conn) as tx:
        if _update(tx, 'prospects', prospect_id, fields) == 0:
            raise NotFoundError("Prospect", prospect_id)
        return Prospect.from_row(_fetch_one(tx, 'prospects', prospect_id))


@_storage_errors
def delete_prospect(prospect_id: int) -> None:
    # Activities are kept; they simply stop resolving to a prospect
    with transaction() as tx:
        cursor = tx.execute("DELETE FROM prospects WHERE id = ?", (prospect_id,))
        if cursor.rowcount == 0:
            raise NotFoundError("Prospect", prospect_id)
    logger.log_entity_write("prospect", "delete", prospect_id)


# Activities

@_storage_errors
def create_activity(prospect_id: int, user_id: str, type: str, details: Optional[Dict[str, Any]] = None,
                    conn: Optional[sqlite3.Connection] = None) -> Activity:
    fields = _checked({
        'prospect_id': prospect_id,
        'user_id': user_id,
        'type': type,
        'details': details or {},
        'created_at': utcnow(),
    }, ACTIVITY_COLUMNS, 'activity')
    with transaction(conn) as tx:
        activity_id = _insert(tx, 'activities', fields)
        return Activity.from_row(_fetch_one(tx, 'activities', activity_id))


@_storage_errors
def list_activities(prospect_id: int) -> List[Activity]:
    with get_db() as conn:
        cursor = conn.execute(
            "SELECT * FROM activities WHERE prospect_id = ? ORDER BY created_at DESC, id DESC",
            (prospect_id,)
        )
        return [Activity.from_row(row) for row in cursor.fetchall()]


# Templates

@_storage_errors
def create_template(data: Dict[str, Any], conn: Optional[sqlite3.Connection] = None) -> Template:
    now = utcnow()
    fields = dict(data)
    fields.setdefault('is_active', True)
    fields.setdefault('times_used', 0)
    fields.setdefault('reply_count', 0)
    fields['created_at'] = now
    fields['updated_at'] = now
    fields = _checked(fields, TEMPLATE_COLUMNS, 'template')
    with transaction(conn) as tx:
        template_id = _insert(tx, 'templates', fields)
        template = Template.from_row(_fetch_one(tx, 'templates', template_id))
    logger.log_entity_write("template", "create", template.id)
    return template


@_storage_errors
def get_template(template_id: int) -> Optional[Template]:
    with get_db() as conn:
        row = _fetch_one(conn, 'templates', template_id)
        return Template.from_row(row) if row else None


@_storage_errors
def list_templates(team_id: int, type: Optional[str] = None) -> List[Template]:
    query = "SELECT * FROM templates WHERE team_id = ?"
    params: List[Any] = [team_id]
    if type:
        query += " AND type = ?"
        params.append(type)
    query += " ORDER BY created_at DESC, id DESC"

    with get_db() as conn:
        cursor = conn.execute(query, params)
        return [Template.from_row(row) for row in cursor.fetchall()]


@_storage_errors
def update_template(template_id: int, data: Dict[str, Any]) -> Template:
    fields = dict(data)
    fields['updated_at'] = utcnow()
    fields = _checked(fields, TEMPLATE_COLUMNS, 'template')
    with transaction() as tx:
        if _update(tx, 'templates', template_id, fields) == 0:
            raise NotFoundError("Template", template_id)
        template = Template.from_row(_fetch_one(tx, 'templates', template_id))
    logger.log_entity_write("template", "update", template_id)
    return template


@_storage_errors
def delete_template(template_id: int) -> None:
    with transaction() as tx:
        cursor = tx.execute("DELETE FROM templates WHERE id = ?", (template_id,))
        if cursor.rowcount == 0:
            raise NotFoundError("Template", template_id)
    logger.log_entity_write("template", "delete", template_id)


# QC queue

@_storage_errors
def create_qc_item(data: Dict[str, Any]) -> QCQueueItem:
    fields = dict(data)
    fields.setdefault('status', QCStatus.PENDING.value)
    fields['submitted_at'] = utcnow()
    fields = _checked(fields, QC_COLUMNS, 'qc item')
    with transaction() as tx:
        item_id = _insert(tx, 'qc_queue', fields)
        item = QCQueueItem.from_row(_fetch_one(tx, 'qc_queue', item_id))
    logger.log_entity_write("qc_item", "create", item.id)
    return item


@_storage_errors
def get_qc_item(item_id: int) -> Optional[QCQueueItem]:
    with get_db() as conn:
        row = _fetch_one(conn, 'qc_queue', item_id)
        return QCQueueItem.from_row(row) if row else None


@_storage_errors
def list_qc_items(status: Optional[str] = None) -> List[QCQueueItem]:
    query = "SELECT * FROM qc_queue"
    params: List[Any] = []
    if status:
        query += " WHERE status = ?"
        params.append(status)
    query += " ORDER BY submitted_at DESC, id DESC"

    with get_db() as conn:
        cursor = conn.execute(query, params)
        return [QCQueueItem.from_row(row) for row in cursor.fetchall()]


@_storage_errors
def update_qc_item(item_id: int, data: Dict[str, Any]) -> QCQueueItem:
    fields = _checked(data, QC_COLUMNS, 'qc item')
    with transaction() as tx:
        if _update(tx, 'qc_queue', item_id, fields) == 0:
            raise NotFoundError("QC item", item_id)
        return QCQueueItem.from_row(_fetch_one(tx, 'qc_queue', item_id))


# Tasks

@_storage_errors
def create_task(data: Dict[str, Any]) -> Task:
    fields = dict(data)
    fields.setdefault('priority', TaskPriority.MEDIUM.value)
    fields.setdefault('status', TaskStatus.PENDING.value)
    fields['created_at'] = utcnow()
    fields = _checked(fields, TASK_COLUMNS, 'task')
    with transaction() as tx:
        task_id = _insert(tx, 'tasks', fields)
        task = Task.from_row(_fetch_one(tx, 'tasks', task_id))
    logger.log_entity_write("task", "create", task.id)
    return task


@_storage_errors
def get_task(task_id: int, conn: Optional[sqlite3.Connection] = None) -> Optional[Task]:
    if conn is not None:
        row = _fetch_one(conn, 'tasks', task_id)
        return Task.from_row(row) if row else None
    with get_db() as new_conn:
        row = _fetch_one(new_conn, 'tasks', task_id)
        return Task.from_row(row) if row else None


@_storage_errors
def list_tasks(team_id: int, assigned_to_id: Optional[str] = None, status: Optional[str] = None,
               due_before: Optional[datetime] = None) -> List[Task]:
    query = "SELECT * FROM tasks WHERE team_id = ?"
    params: List[Any] = [team_id]
    if assigned_to_id:
        query += " AND assigned_to_id = ?"
        params.append(assigned_to_id)
    if status:
        query += " AND status = ?"
        params.append(status)
    if due_before is not None:
        query += " AND due_date <= ?"
        params.append(to_db_timestamp(due_before))
    query += " ORDER BY due_date ASC, id ASC"

    with get_db() as conn:
        cursor = conn.execute(query, params)
        return [Task.from_row(row) for row in cursor.fetchall()]


@_storage_errors
def update_task(task_id: int, data: Dict[str, Any], conn: Optional[sqlite3.Connection] = None) -> Task:
    fields = _checked(data, TASK_COLUMNS, 'task')
    with transaction(conn) as tx:
        if _update(tx, 'tasks', task_id, fields) == 0:
            raise NotFoundError("Task", task_id)
        return Task.from_row(_fetch_one(tx, 'tasks', task_id))


# Aggregates

@_storage_errors
def count_prospects_by_stage() -> Dict[str, int]:
    with get_db() as conn:
        cursor = conn.execute("SELECT stage, COUNT(*) AS total FROM prospects GROUP BY stage")
        return {row['stage']: int(row['total']) for row in cursor.fetchall()}


@_storage_errors
def count_tasks(status: str) -> int:
    with get_db() as conn:
        cursor = conn.execute("SELECT COUNT(*) FROM tasks WHERE status = ?", (status,))
        result = cursor.fetchone()
        return result[0] if result else 0


@_storage_errors
def count_qc_items(status: str) -> int:
    with get_db() as conn:
        cursor = conn.execute("SELECT COUNT(*) FROM qc_queue WHERE status = ?", (status,))
        result = cursor.fetchone()
        return result[0] if result else 0
