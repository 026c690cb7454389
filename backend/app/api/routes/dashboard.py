"""Study progress dashboard endpoint."""
from fastapi import APIRouter, Depends

from app.api.deps import get_current_user, get_dashboard_service
from app.api.schemas import DashboardResponse
from app.models.orm import User
from app.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    user: User = Depends(get_current_user),
    dashboard: DashboardService = Depends(get_dashboard_service),
):
    return DashboardResponse.model_validate(dashboard.overview(user))
