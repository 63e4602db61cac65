"""
QC review queue tests.
"""

import pytest

from outreach_crm.core.errors import NotFoundError, ValidationError
from outreach_crm.core.qc_review import (
    QCReviewWorkflow,
    get_item,
    list_items,
    list_pending_items,
    review_item,
    submit_item,
)
from outreach_crm.core.schema import QCStatus


@pytest.fixture
def qc_item(prospect):
    return submit_item(prospect.id, 'va-1', 'FIRST_TOUCH', 'Hi Ada, loved your talk on engines.')


class TestSubmit:

    def test_submit_starts_pending(self, qc_item):
        assert qc_item.status == QCStatus.PENDING.value
        assert qc_item.submitted_at is not None
        assert qc_item.reviewed_at is None
        assert qc_item.reviewed_by_id is None

    def test_invalid_type(self, prospect):
        with pytest.raises(ValidationError) as exc_info:
            submit_item(prospect.id, 'va-1', 'CONNECTION_REQUEST', 'Hi')
        assert exc_info.value.field == 'type'

    def test_empty_draft(self, prospect):
        with pytest.raises(ValidationError):
            submit_item(prospect.id, 'va-1', 'VIDEO', '   ')


class TestReview:

    def test_approve_sets_all_review_fields(self, qc_item):
        reviewed = review_item(qc_item.id, 'APPROVED', 'u1', feedback='looks good')

        assert reviewed.status == 'APPROVED'
        assert reviewed.feedback == 'looks good'
        assert reviewed.reviewed_by_id == 'u1'
        assert reviewed.reviewed_at is not None
        assert get_item(qc_item.id) == reviewed

    def test_revision_requested(self, qc_item):
        reviewed = review_item(qc_item.id, QCStatus.REVISION_REQUESTED, 'manager-1', 'Shorter please')
        assert reviewed.status == 'REVISION_REQUESTED'

    def test_pending_is_not_a_decision(self, qc_item):
        with pytest.raises(ValidationError) as exc_info:
            review_item(qc_item.id, 'PENDING', 'u1')
        assert exc_info.value.field == 'status'

    def test_review_missing_item(self, test_db):
        with pytest.raises(NotFoundError):
            review_item(999, 'REJECTED', 'u1')

    def test_rereview_overwrites_decision(self, qc_item):
        review_item(qc_item.id, 'REJECTED', 'u1', 'Off tone')
        reviewed = review_item(qc_item.id, 'APPROVED', 'u2')

        assert reviewed.status == 'APPROVED'
        assert reviewed.reviewed_by_id == 'u2'
        assert reviewed.feedback is None


class TestListing:

    def test_list_by_status_newest_first(self, prospect):
        first = submit_item(prospect.id, 'va-1', 'FIRST_TOUCH', 'Draft one')
        second = submit_item(prospect.id, 'va-1', 'FOLLOW_UP', 'Draft two')
        third = submit_item(prospect.id, 'va-1', 'VIDEO', 'Draft three')
        review_item(second.id, 'APPROVED', 'u1')

        assert [i.id for i in list_items()] == [third.id, second.id, first.id]
        assert [i.id for i in list_pending_items()] == [third.id, first.id]
        assert [i.id for i in list_items('APPROVED')] == [second.id]

    def test_invalid_status_filter(self, test_db):
        with pytest.raises(ValidationError):
            QCReviewWorkflow().list_items('MAYBE')

    def test_get_missing_item(self, test_db):
        with pytest.raises(NotFoundError):
            QCReviewWorkflow().get(1)
