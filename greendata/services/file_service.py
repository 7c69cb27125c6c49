from typing import List, Optional, Sequence
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from greendata.models.file import FileRecord
from greendata.models.user import Profile
from greendata.services import stats_service


async def list_user_files(db: AsyncSession, user_id: int) -> Sequence[FileRecord]:
    result = await db.execute(
        select(FileRecord)
        .where(FileRecord.user_id == user_id)
        .order_by(FileRecord.uploaded_at.desc(), FileRecord.id.desc())
    )
    return result.scalars().all()


async def get_user_file(db: AsyncSession, user_id: int, file_id: int) -> Optional[FileRecord]:
    result = await db.execute(
        select(FileRecord).where(FileRecord.id == file_id, FileRecord.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def user_stats(db: AsyncSession, user_id: int) -> dict:
    return stats_service.summarize_files(await list_user_files(db, user_id))


async def admin_overview(db: AsyncSession) -> dict:
    profile_count = await db.scalar(select(func.count()).select_from(Profile))
    records = (await db.execute(select(FileRecord))).scalars().all()
    profiles: List[Profile] = (
        await db.execute(
            select(Profile).options(selectinload(Profile.files)).order_by(Profile.created_at, Profile.id)
        )
    ).scalars().all()
    return stats_service.admin_overview(profile_count or 0, records, profiles)
