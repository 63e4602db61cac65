"""
QC review queue - human review of outbound drafts before they are sent.
Items start PENDING and are decided once; a resubmission is a new item.
"""

from typing import Any, Dict, List, Optional

from . import dao
from .errors import NotFoundError, ValidationError
from .schema import QCItemType, QCQueueItem, QCStatus, REVIEW_STATUSES, utcnow, values_of
from ..util.logging import logger


class QCReviewWorkflow:
    """Submits drafts to the review queue and records review decisions."""

    def submit(self, prospect_id: int, submitted_by_id: str, type: str, draft_content: str,
               template_id: Optional[int] = None) -> QCQueueItem:
        """Queue a draft for review."""
        if type not in values_of(QCItemType):
            raise ValidationError(f"type must be one of: {values_of(QCItemType)}", field="type")
        if not draft_content or not draft_content.strip():
            raise ValidationError("draftContent cannot be empty", field="draftContent")

        item = dao.create_qc_item({
            'prospect_id': prospect_id,
            'template_id': template_id,
            'submitted_by_id': submitted_by_id,
            'type': type,
            'draft_content': draft_content,
            'status': QCStatus.PENDING.value,
        })

        logger.info(f"Queued {type} draft {item.id} for prospect {prospect_id} by {submitted_by_id}")
        return item

    def get(self, item_id: int) -> QCQueueItem:
        item = dao.get_qc_item(item_id)
        if item is None:
            raise NotFoundError("QC item", item_id)
        return item

    def list_items(self, status: Optional[str] = None) -> List[QCQueueItem]:
        if status and status not in values_of(QCStatus):
            raise ValidationError(f"status must be one of: {values_of(QCStatus)}", field="status")
        return dao.list_qc_items(status)

    def list_pending(self) -> List[QCQueueItem]:
        return dao.list_qc_items(QCStatus.PENDING.value)

    def review(self, item_id: int, status: str, reviewer_id: str,
               feedback: Optional[str] = None) -> QCQueueItem:
        """Record a review decision.

        Reviewing an already reviewed item overwrites the previous decision;
        the queue keeps no decision history of its own.
        """
        if isinstance(status, QCStatus):
            status = status.value
        if status not in REVIEW_STATUSES:
            raise ValidationError(f"status must be one of: {REVIEW_STATUSES}", field="status")
        if not reviewer_id or not reviewer_id.strip():
            raise ValidationError("reviewedById cannot be empty", field="reviewedById")

        updates: Dict[str, Any] = {
            'status': status,
            'feedback': feedback,
            'reviewed_by_id': reviewer_id,
            'reviewed_at': utcnow(),
        }
        item = dao.update_qc_item(item_id, updates)

        logger.log_qc_review(item_id, status, reviewer_id, feedback)
        return item


# Global review workflow instance
qc_workflow = QCReviewWorkflow()


def submit_item(prospect_id: int, submitted_by_id: str, type: str, draft_content: str,
                template_id: Optional[int] = None) -> QCQueueItem:
    """Queue a draft for review."""
    return qc_workflow.submit(prospect_id, submitted_by_id, type, draft_content, template_id)


def get_item(item_id: int) -> QCQueueItem:
    return qc_workflow.get(item_id)


def list_items(status: Optional[str] = None) -> List[QCQueueItem]:
    return qc_workflow.list_items(status)


def list_pending_items() -> List[QCQueueItem]:
    return qc_workflow.list_pending()


def review_item(item_id: int, status: str, reviewer_id: str, feedback: Optional[str] = None) -> QCQueueItem:
    """Approve, reject or request revision of a queued draft."""
    return qc_workflow.review(item_id, status, reviewer_id, feedback)
