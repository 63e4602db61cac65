"""
Funnel and workload aggregates for the dashboard.
"""

from typing import Any, Dict

from . import dao
from .config import get_reply_rate_placeholder
from .schema import QCStatus, TaskStatus


def overview() -> Dict[str, Any]:
    """Aggregate counts across all teams.

    prospectsByStage only carries stages that currently hold prospects; a
    missing stage means zero. tasksDueToday counts every PENDING task
    regardless of due date, and replyRate is a fixed placeholder until reply
    tracking exists.
    """
    return {
        "prospectsByStage": dao.count_prospects_by_stage(),
        "tasksDueToday": dao.count_tasks(TaskStatus.PENDING.value),
        "qcPending": dao.count_qc_items(QCStatus.PENDING.value),
        "replyRate": get_reply_rate_placeholder(),
    }
