"""Dashboard endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wordflow.auth.dependencies import get_current_user
from wordflow.dashboard.schemas import DashboardResponse
from wordflow.dashboard.service import get_user_dashboard
from wordflow.database import get_session
from wordflow.db.models import User

router = APIRouter(prefix="/api/v1", tags=["Dashboard"])


@router.get("/users/{user_id}/dashboard", response_model=DashboardResponse)
async def user_dashboard(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Stats, follow counts, recent activity and 30-day trends for the caller."""
    return await get_user_dashboard(db, user, user_id)
