from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from greendata.core.database import get_db
from greendata.core.security import get_current_admin
from greendata.models.user import Profile
from greendata.schemas.stats import AdminOverview
from greendata.services import file_service

router = APIRouter(prefix="/admin", tags=["Admin"])

@router.get("/stats", response_model=AdminOverview)
async def admin_stats(
    _: Profile = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Usage across every profile: totals plus per-user file counts and storage."""
    return AdminOverview(**await file_service.admin_overview(db))
