"""
Task workflow tests.
"""

import pytest
from datetime import datetime, timedelta, timezone

from outreach_crm.core import tasks
from outreach_crm.core.errors import NotFoundError, ValidationError
from outreach_crm.core.schema import TaskStatus


def _task_data(team_id, **overrides):
    data = {
        'team_id': team_id,
        'assigned_to_id': 'va-1',
        'type': 'PROFILE_VIEW',
        'title': 'View profile',
        'due_date': datetime.now(timezone.utc) + timedelta(hours=4),
    }
    data.update(overrides)
    return data


class TestTaskCreation:

    def test_defaults(self, team):
        task = tasks.create_task(_task_data(team.id))

        assert task.status == TaskStatus.PENDING.value
        assert task.priority == 'MEDIUM'
        assert task.completed_at is None
        assert task.due_date.tzinfo is not None

    def test_get_missing_task(self, test_db):
        with pytest.raises(NotFoundError):
            tasks.get_task(404)


class TestCompleteTask:

    def test_complete_pending_task(self, team):
        task = tasks.create_task(_task_data(team.id))

        completed = tasks.complete_task(task.id)

        assert completed.status == TaskStatus.COMPLETED.value
        assert completed.completed_at is not None

    def test_complete_in_progress_task(self, team):
        task = tasks.create_task(_task_data(team.id, status='IN_PROGRESS'))
        assert tasks.complete_task(task.id).status == 'COMPLETED'

    def test_recompleting_keeps_original_completion_time(self, team):
        task = tasks.create_task(_task_data(team.id))
        first = tasks.complete_task(task.id)

        second = tasks.complete_task(task.id)

        assert second.completed_at == first.completed_at

    def test_complete_missing_task(self, test_db):
        with pytest.raises(NotFoundError):
            tasks.complete_task(12345)


class TestUpdateTask:

    def test_update_fields(self, team):
        task = tasks.create_task(_task_data(team.id))

        updated = tasks.update_task(task.id, {'priority': 'URGENT', 'title': 'View profile today'})

        assert updated.priority == 'URGENT'
        assert updated.title == 'View profile today'

    def test_update_missing_task(self, test_db):
        with pytest.raises(NotFoundError):
            tasks.update_task(77, {'title': 'nope'})

    def test_completed_at_is_not_writable(self, team):
        task = tasks.create_task(_task_data(team.id))
        with pytest.raises(ValidationError):
            tasks.update_task(task.id, {'completed_at': datetime.now(timezone.utc)})


class TestListTasks:

    def test_filters_and_ordering(self, team):
        now = datetime.now(timezone.utc)
        later = tasks.create_task(_task_data(team.id, title='later', due_date=now + timedelta(days=2)))
        soon = tasks.create_task(_task_data(team.id, title='soon', due_date=now + timedelta(hours=1)))
        tasks.create_task(_task_data(team.id, title='other va', assigned_to_id='va-2',
                                     due_date=now + timedelta(hours=2)))

        mine = tasks.list_tasks(team.id, assigned_to_id='va-1')
        assert [t.id for t in mine] == [soon.id, later.id]

        due_today = tasks.list_tasks(team.id, assigned_to_id='va-1', due_before=now + timedelta(days=1))
        assert [t.id for t in due_today] == [soon.id]

    def test_status_filter(self, team):
        done = tasks.create_task(_task_data(team.id))
        tasks.create_task(_task_data(team.id))
        tasks.complete_task(done.id)

        completed = tasks.list_tasks(team.id, status='COMPLETED')
        assert [t.id for t in completed] == [done.id]

    def test_other_team_tasks_are_excluded(self, team):
        tasks.create_task(_task_data(team.id))
        assert tasks.list_tasks(team.id + 1) == []

    def test_invalid_status_filter(self, team):
        with pytest.raises(ValidationError):
            tasks.list_tasks(team.id, status='DONE')


class TestStatusEdits:
    """Status changes made through update_task."""

    def test_update_to_completed_stamps_completed_at(self, team):
        task = tasks.create_task(_task_data(team.id))

        updated = tasks.update_task(task.id, {'status': 'COMPLETED'})

        assert updated.status == 'COMPLETED'
        assert updated.completed_at is not None

    def test_complete_after_status_edit_is_noop(self, team):
        task = tasks.create_task(_task_data(team.id))
        edited = tasks.update_task(task.id, {'status': 'COMPLETED'})

        assert tasks.complete_task(task.id).completed_at == edited.completed_at

    def test_repeated_completed_edit_keeps_first_stamp(self, team):
        task = tasks.create_task(_task_data(team.id))
        first = tasks.complete_task(task.id)

        again = tasks.update_task(task.id, {'status': 'COMPLETED', 'title': 'renamed'})

        assert again.completed_at == first.completed_at
        assert again.title == 'renamed'

    def test_reopening_clears_completed_at(self, team):
        task = tasks.create_task(_task_data(team.id))
        tasks.complete_task(task.id)

        reopened = tasks.update_task(task.id, {'status': 'PENDING'})

        assert reopened.status == 'PENDING'
        assert reopened.completed_at is None
        assert tasks.complete_task(task.id).completed_at is not None

    def test_in_progress_to_skipped(self, team):
        task = tasks.create_task(_task_data(team.id, status='IN_PROGRESS'))

        skipped = tasks.update_task(task.id, {'status': TaskStatus.SKIPPED})

        assert skipped.status == 'SKIPPED'
        assert skipped.completed_at is None

    @pytest.mark.parametrize("field", ['status', 'priority'])
    def test_null_status_or_priority_rejected(self, team, field):
        task = tasks.create_task(_task_data(team.id))

        with pytest.raises(ValidationError) as exc_info:
            tasks.update_task(task.id, {field: None})

        assert exc_info.value.field == field
        reloaded = tasks.get_task(task.id)
        assert reloaded.status == 'PENDING'
        assert reloaded.priority == 'MEDIUM'
        assert tasks.list_tasks(team.id, status='PENDING')[0].id == task.id

    def test_unknown_status_rejected(self, team):
        task = tasks.create_task(_task_data(team.id))
        with pytest.raises(ValidationError):
            tasks.update_task(task.id, {'status': 'DONE'})
