"""
Pipeline tests - stage changes, milestone timestamps and the activity trail.
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import patch

from outreach_crm.core import dao
from outreach_crm.core.db import get_db
from outreach_crm.core.errors import IllegalTransitionError, InternalError, NotFoundError, ValidationError
from outreach_crm.core.pipeline import (
    DEFAULT_TRANSITION_TABLE,
    STAMPING_TABLE,
    apply_prospect_update,
    derived_timestamps_for,
    is_legal_transition,
)
from outreach_crm.core.schema import ActivityType, ProspectStage


def _row_counts():
    with get_db() as conn:
        prospects = conn.execute("SELECT COUNT(*) FROM prospects").fetchone()[0]
        activities = conn.execute("SELECT COUNT(*) FROM activities").fetchone()[0]
    return prospects, activities


class TestStageChange:
    """Stage changes through apply_prospect_update."""

    def test_move_to_warming_records_activity_and_timestamp(self, prospect):
        updated = apply_prospect_update(prospect.id, {'stage': 'WARMING'}, acting_user_id='u1')

        assert updated.stage == 'WARMING'
        assert updated.warming_started_at is not None

        activities = dao.list_activities(prospect.id)
        assert len(activities) == 1
        assert activities[0].type == ActivityType.STAGE_CHANGED.value
        assert activities[0].user_id == 'u1'
        assert activities[0].details == {"fromStage": "IDENTIFIED", "toStage": "WARMING"}

    def test_field_only_update_after_transition(self, prospect):
        warmed = apply_prospect_update(prospect.id, {'stage': 'WARMING'}, acting_user_id='u1')

        updated = apply_prospect_update(prospect.id, {'notes': 'Liked a post'}, acting_user_id='u1')

        assert updated.notes == 'Liked a post'
        assert updated.warming_started_at == warmed.warming_started_at
        assert len(dao.list_activities(prospect.id)) == 1

    def test_same_stage_is_not_a_transition(self, prospect):
        updated = apply_prospect_update(prospect.id, {'stage': 'IDENTIFIED', 'title': 'CEO'}, acting_user_id='u1')

        assert updated.stage == 'IDENTIFIED'
        assert updated.title == 'CEO'
        assert dao.list_activities(prospect.id) == []
        assert all(getattr(updated, field) is None for field in STAMPING_TABLE.values())

    def test_updated_at_is_refreshed(self, prospect):
        updated = apply_prospect_update(prospect.id, {'notes': 'x'})
        assert updated.updated_at >= prospect.updated_at

    def test_timestamps_are_never_overwritten(self, prospect):
        first = apply_prospect_update(prospect.id, {'stage': 'WARMING'}, acting_user_id='u1')
        apply_prospect_update(prospect.id, {'stage': 'IDENTIFIED'}, acting_user_id='u1')
        again = apply_prospect_update(prospect.id, {'stage': 'WARMING'}, acting_user_id='u1')

        assert again.warming_started_at == first.warming_started_at
        assert len(dao.list_activities(prospect.id)) == 3

    def test_won_then_lost_keeps_closed_at(self, prospect):
        won = apply_prospect_update(prospect.id, {'stage': 'WON'}, acting_user_id='u1')
        lost = apply_prospect_update(prospect.id, {'stage': 'LOST'}, acting_user_id='u1')

        assert won.closed_at is not None
        assert lost.closed_at == won.closed_at

    def test_each_milestone_stage_stamps_its_field(self, team):
        for stage, field in STAMPING_TABLE.items():
            p = dao.create_prospect({
                'team_id': team.id, 'first_name': 'A', 'last_name': 'B',
                'company': 'C', 'title': 'D', 'source': 'E',
            })
            updated = apply_prospect_update(p.id, {'stage': stage}, acting_user_id='u1')
            assert getattr(updated, field) is not None, f"{stage} should stamp {field}"

    def test_non_milestone_stage_stamps_nothing(self, prospect):
        updated = apply_prospect_update(prospect.id, {'stage': 'VIDEO_READY'}, acting_user_id='u1')

        assert all(getattr(updated, field) is None for field in STAMPING_TABLE.values())
        assert len(dao.list_activities(prospect.id)) == 1

    def test_missing_identity_falls_back_to_system_user(self, prospect):
        apply_prospect_update(prospect.id, {'stage': 'WARMING'})

        activities = dao.list_activities(prospect.id)
        assert activities[0].user_id == 'system'

    def test_accepts_enum_stage(self, prospect):
        updated = apply_prospect_update(prospect.id, {'stage': ProspectStage.CALL_BOOKED}, acting_user_id='u1')
        assert updated.stage == 'CALL_BOOKED'
        assert updated.call_booked_at is not None


class TestUpdateRejections:
    """Updates that must not write anything."""

    def test_missing_prospect_raises_not_found_without_writes(self, test_db):
        before = _row_counts()

        with pytest.raises(NotFoundError):
            apply_prospect_update(9999, {'stage': 'WARMING'}, acting_user_id='u1')

        assert _row_counts() == before

    def test_derived_timestamp_in_patch_is_rejected(self, prospect):
        with pytest.raises(ValidationError) as exc_info:
            apply_prospect_update(prospect.id, {'warming_started_at': datetime.now(timezone.utc)})

        assert exc_info.value.field == 'warming_started_at'
        assert dao.get_prospect(prospect.id).warming_started_at is None

    def test_unknown_stage_is_rejected(self, prospect):
        with pytest.raises(ValidationError) as exc_info:
            apply_prospect_update(prospect.id, {'stage': 'DANCING'})
        assert exc_info.value.field == 'stage'

    def test_activity_failure_rolls_back_update(self, prospect):
        with patch('outreach_crm.core.dao.create_activity', side_effect=InternalError("disk full")):
            with pytest.raises(InternalError):
                apply_prospect_update(prospect.id, {'stage': 'WARMING', 'notes': 'new'}, acting_user_id='u1')

        reloaded = dao.get_prospect(prospect.id)
        assert reloaded.stage == 'IDENTIFIED'
        assert reloaded.notes is None
        assert reloaded.warming_started_at is None
        assert reloaded.updated_at == prospect.updated_at
        assert dao.list_activities(prospect.id) == []


class TestTransitionTable:
    """Configurable stage legality."""

    def test_terminal_stages_are_absorbing(self):
        for terminal in ('WON', 'LOST', 'UNRESPONSIVE'):
            assert DEFAULT_TRANSITION_TABLE[terminal] == frozenset({terminal})
            assert not is_legal_transition(terminal, 'IDENTIFIED')

    def test_same_stage_always_legal(self):
        assert is_legal_transition('WON', 'WON')
        assert is_legal_transition('IDENTIFIED', 'IDENTIFIED', table={})

    def test_custom_table(self):
        table = {'IDENTIFIED': frozenset({'WARMING'})}
        assert is_legal_transition('IDENTIFIED', 'WARMING', table)
        assert not is_legal_transition('IDENTIFIED', 'WON', table)

    def test_leaving_terminal_stage_allowed_when_not_enforced(self, prospect):
        apply_prospect_update(prospect.id, {'stage': 'WON'}, acting_user_id='u1')
        reopened = apply_prospect_update(prospect.id, {'stage': 'IDENTIFIED'}, acting_user_id='u1')
        assert reopened.stage == 'IDENTIFIED'

    def test_leaving_terminal_stage_rejected_when_enforced(self, prospect, enforce_transitions):
        apply_prospect_update(prospect.id, {'stage': 'LOST'}, acting_user_id='u1')
        before = _row_counts()

        with pytest.raises(IllegalTransitionError) as exc_info:
            apply_prospect_update(prospect.id, {'stage': 'WARMING'}, acting_user_id='u1')

        assert exc_info.value.field == 'stage'
        assert dao.get_prospect(prospect.id).stage == 'LOST'
        assert _row_counts() == before

    def test_same_terminal_stage_allowed_when_enforced(self, prospect, enforce_transitions):
        apply_prospect_update(prospect.id, {'stage': 'WON'}, acting_user_id='u1')
        updated = apply_prospect_update(prospect.id, {'stage': 'WON', 'close_reason': 'signed'})
        assert updated.close_reason == 'signed'


class TestDerivedTimestamps:
    """Pure stamping rules."""

    def test_only_null_fields_are_stamped(self, prospect):
        now = datetime.now(timezone.utc)
        assert derived_timestamps_for(prospect, 'WARMING', now) == {'warming_started_at': now}

        prospect.warming_started_at = now
        assert derived_timestamps_for(prospect, 'WARMING', now) == {}

    def test_unmapped_stage(self, prospect):
        assert derived_timestamps_for(prospect, 'FIRST_TOUCH_READY', datetime.now(timezone.utc)) == {}
