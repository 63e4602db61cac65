"""
QC review queue endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter

from ..core.qc_review import get_item, list_items, review_item, submit_item
from .schemas import QCItemResponse, QCReviewRequest, QCSubmitRequest

router = APIRouter()


@router.get("", response_model=List[QCItemResponse])
def list_qc_items_endpoint(status: Optional[str] = None):
    """Queue items, newest submission first, optionally filtered by status."""
    return list_items(status)


@router.post("", response_model=QCItemResponse, status_code=201)
def submit_qc_item_endpoint(request: QCSubmitRequest):
    return submit_item(
        prospect_id=request.prospect_id,
        submitted_by_id=request.submitted_by_id,
        type=request.type,
        draft_content=request.draft_content,
        template_id=request.template_id
    )


@router.get("/{item_id}", response_model=QCItemResponse)
def get_qc_item_endpoint(item_id: int):
    return get_item(item_id)


@router.patch("/{item_id}", response_model=QCItemResponse)
def review_qc_item_endpoint(item_id: int, request: QCReviewRequest):
    return review_item(item_id, request.status, request.reviewed_by_id, request.feedback)
