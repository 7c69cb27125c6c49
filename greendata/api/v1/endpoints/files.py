from fastapi import APIRouter, Depends, HTTPException, UploadFile, File as FileParam, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from greendata.core.database import get_db
from greendata.core.security import get_current_user, oauth2_scheme
from greendata.models.user import Profile
from greendata.schemas.compression import UploadResponse
from greendata.schemas.file import FileDeleted, FileOut
from greendata.schemas.stats import StorageStats
from greendata.services import file_service
from greendata.services.processing_client import ProcessingError, get_processing_client
from greendata.services.storage_service import ObjectNotFoundError, StorageError, get_storage
from greendata.services.upload_pipeline import UploadPipeline
from typing import List
from urllib.parse import quote
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["File Management"])

@router.get("/", response_model=List[FileOut])
async def list_files(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await file_service.list_user_files(db, current_user.id)

@router.get("/stats", response_model=StorageStats)
async def storage_stats(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return StorageStats(**await file_service.user_stats(db, current_user.id))

@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    files: List[UploadFile] = FileParam(...),
    token: str = Depends(oauth2_scheme),
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_storage),
):
    pipeline = UploadPipeline(storage, get_processing_client(db, storage))
    try:
        result = await pipeline.run(current_user, token, files)
    except (StorageError, ProcessingError) as e:
        logger.error("Upload error: %s", e, exc_info=True)
        raise HTTPException(status_code=400, detail=str(e) or "An error occurred during upload")

    if result is None:
        raise HTTPException(status_code=400, detail="No file selected")
    return result

@router.get("/{file_id}/download", response_class=Response)
async def download_file(
    file_id: int,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_storage),
):
    db_file = await file_service.get_user_file(db, current_user.id, file_id)
    if not db_file:
        raise HTTPException(status_code=404, detail="File not found")

    try:
        file_content = await run_in_threadpool(storage.download, db_file.storage_path)
    except ObjectNotFoundError:
        raise HTTPException(status_code=404, detail="File not found in storage")
    except StorageError as e:
        logger.error("Download error for %s: %s", db_file.storage_path, e, exc_info=True)
        raise HTTPException(status_code=400, detail=str(e))

    return Response(
        content=file_content,
        media_type=db_file.mime_type or "application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(db_file.filename)}"}
    )

@router.delete("/{file_id}", response_model=FileDeleted)
async def delete_file(
    file_id: int,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage=Depends(get_storage),
):
    db_file = await file_service.get_user_file(db, current_user.id, file_id)
    if not db_file:
        raise HTTPException(status_code=404, detail="File not found")

    # Object first, then the row; a failure in between leaves the row without an object
    try:
        await run_in_threadpool(storage.remove, db_file.storage_path)
    except StorageError as e:
        logger.error("Delete error for %s: %s", db_file.storage_path, e, exc_info=True)
        raise HTTPException(status_code=400, detail=str(e))

    try:
        await db.delete(db_file)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Row delete failed for file %s: %s", file_id, e, exc_info=True)
        raise HTTPException(status_code=400, detail=str(e))

    return FileDeleted(message=f"{db_file.filename} has been removed")
