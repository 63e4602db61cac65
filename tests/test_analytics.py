"""
Analytics overview tests.
"""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from outreach_crm.core import dao, tasks
from outreach_crm.core.analytics import overview
from outreach_crm.core.qc_review import review_item, submit_item


def _prospect(team_id, stage):
    return dao.create_prospect({
        'team_id': team_id, 'first_name': 'F', 'last_name': 'L',
        'company': 'Co', 'title': 'T', 'source': 'LinkedIn', 'stage': stage,
    })


def test_empty_database(test_db):
    result = overview()
    assert result == {
        "prospectsByStage": {},
        "tasksDueToday": 0,
        "qcPending": 0,
        "replyRate": 12.5,
    }


def test_prospects_grouped_by_stage(team):
    _prospect(team.id, 'IDENTIFIED')
    _prospect(team.id, 'WARMING')
    _prospect(team.id, 'WARMING')

    assert overview()["prospectsByStage"] == {"IDENTIFIED": 1, "WARMING": 2}


def test_pending_counts(team):
    p = _prospect(team.id, 'IDENTIFIED')
    due = datetime.now(timezone.utc) + timedelta(days=10)
    for _ in range(3):
        tasks.create_task({'team_id': team.id, 'assigned_to_id': 'va', 'type': 'CUSTOM',
                           'title': 't', 'due_date': due})
    done = tasks.create_task({'team_id': team.id, 'assigned_to_id': 'va', 'type': 'CUSTOM',
                              'title': 'done', 'due_date': due})
    tasks.complete_task(done.id)

    submit_item(p.id, 'va', 'FIRST_TOUCH', 'one')
    reviewed = submit_item(p.id, 'va', 'FIRST_TOUCH', 'two')
    review_item(reviewed.id, 'APPROVED', 'mgr')

    result = overview()
    # Every pending task counts, whatever its due date
    assert result["tasksDueToday"] == 3
    assert result["qcPending"] == 1


def test_reply_rate_from_config(test_db):
    with patch.dict(os.environ, {'REPLY_RATE_PLACEHOLDER': '30'}):
        assert overview()["replyRate"] == 30.0
