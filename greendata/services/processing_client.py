import logging
from typing import Optional

import httpx
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from greendata.core.config import settings
from greendata.models.user import Profile
from greendata.schemas.compression import CompressRequest, CompressResponse
from greendata.services.compression_service import CompressionService, compression_service

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """The compress-file function could not be invoked or answered with an error."""


class ProcessingClient:
    """Invokes the compress-file function, over HTTP when a URL is configured, in-process otherwise."""

    def __init__(
        self,
        db: AsyncSession,
        storage,
        function_url: Optional[str] = None,
        compressor: CompressionService = compression_service,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.db = db
        self.storage = storage
        self.function_url = function_url
        self.compressor = compressor
        self.transport = transport

    async def invoke(self, owner: Profile, token: str, request: CompressRequest) -> CompressResponse:
        if self.function_url:
            return await self._invoke_remote(token, request)
        try:
            return await self.compressor.process(self.db, self.storage, owner, request)
        except Exception as exc:
            raise ProcessingError(str(exc) or "An error occurred during compression") from exc

    async def _invoke_remote(self, token: str, request: CompressRequest) -> CompressResponse:
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(
                    self.function_url,
                    json=request.model_dump(by_alias=True),
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as exc:
            logger.error("compress-file request failed: %s", exc, exc_info=True)
            raise ProcessingError(str(exc) or "Failed to send a request to the compress-file function") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            message = body.get("error") if isinstance(body, dict) else None
            raise ProcessingError(message or f"compress-file returned HTTP {response.status_code}")

        try:
            return CompressResponse.model_validate(body)
        except ValidationError as exc:
            raise ProcessingError("compress-file returned an unexpected response") from exc


def get_processing_client(db: AsyncSession, storage) -> ProcessingClient:
    return ProcessingClient(db, storage, function_url=settings.PROCESSING_FUNCTION_URL)
