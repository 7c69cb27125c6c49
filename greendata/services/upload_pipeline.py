"""
Upload orchestration: store the object, invoke compress-file, report savings.

A failure at any step aborts the upload. Nothing is rolled back, so an object
stored before a failed compress-file call stays in the bucket without a row.
"""
import enum
import logging
from typing import Optional, Sequence

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from greendata.models.user import Profile
from greendata.schemas.compression import CompressRequest, UploadResponse
from greendata.services.processing_client import ProcessingClient
from greendata.services.storage_service import build_object_key

logger = logging.getLogger(__name__)


class UploadState(str, enum.Enum):
    IDLE = "idle"
    UPLOADING = "uploading"


class UploadPipeline:
    def __init__(self, storage, processor: ProcessingClient):
        self.storage = storage
        self.processor = processor
        self.state = UploadState.IDLE
        self.progress = 0
        self.history = []

    def _transition(self, state: UploadState, progress: int):
        self.state = state
        self.progress = progress
        self.history.append((state, progress))

    async def run(self, owner: Profile, token: str, files: Sequence[UploadFile]) -> Optional[UploadResponse]:
        """Upload the first of ``files``; the rest are ignored. Returns None for an empty selection."""
        if not files:
            return None
        upload = files[0]

        self._transition(UploadState.UPLOADING, 0)
        try:
            content = await upload.read()
            object_key = build_object_key(owner.id, upload.filename)
            await run_in_threadpool(self.storage.upload, object_key, content, upload.content_type)
            self._transition(UploadState.UPLOADING, 50)

            request = CompressRequest(
                file_path=object_key,
                filename=upload.filename,
                original_size=upload.size if upload.size is not None else len(content),
                mime_type=upload.content_type,
            )
            result = await self.processor.invoke(owner, token, request)
            self._transition(UploadState.UPLOADING, 100)

            logger.info("Upload of %s complete, saved %s%%", object_key, result.savings_percent)
            return UploadResponse(**result.model_dump(), file_path=object_key)
        finally:
            self._transition(UploadState.IDLE, 0)
