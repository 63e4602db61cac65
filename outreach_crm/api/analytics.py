from fastapi import APIRouter

from ..core.analytics import overview
from .schemas import AnalyticsOverviewResponse

router = APIRouter()


@router.get("/overview", response_model=AnalyticsOverviewResponse)
def analytics_overview_endpoint():
    return overview()
