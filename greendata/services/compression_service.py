"""
The compress-file function.

No bytes are transformed. The stored object is read to stand in for an
inspection step, a reduction ratio is drawn at random and the reported size
is derived from it. Swap ``CompressionService.compress`` for a real codec
before relying on the numbers.
"""
import logging
import math
import random
from dataclasses import dataclass
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from greendata.models.file import FileRecord
from greendata.models.user import Profile
from greendata.schemas.compression import CompressRequest, CompressResponse

logger = logging.getLogger(__name__)

MIN_RATIO = 0.3
RATIO_SPREAD = 0.2


@dataclass(frozen=True)
class CompressionResult:
    original_size: int
    compressed_size: int
    ratio: float

    @property
    def compression_ratio(self) -> float:
        """Stored percentage, e.g. 42.7."""
        return self.ratio * 100

    @property
    def savings_percent(self) -> str:
        return f"{self.ratio * 100:.1f}"

    @property
    def message(self) -> str:
        return f"File compressed successfully! Saved {self.savings_percent}% of storage space."


class CompressionService:
    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def draw_ratio(self) -> float:
        """Reduction ratio in [0.30, 0.50)."""
        return MIN_RATIO + self._rng.random() * RATIO_SPREAD

    def compress(self, original_size: int, ratio: Optional[float] = None) -> CompressionResult:
        if ratio is None:
            ratio = self.draw_ratio()
        compressed_size = math.floor(original_size * (1 - ratio))
        return CompressionResult(original_size=original_size, compressed_size=compressed_size, ratio=ratio)

    async def process(self, db: AsyncSession, storage, owner: Profile, request: CompressRequest) -> CompressResponse:
        """Read the object, size it and record it for ``owner``. Storage and database errors propagate."""
        logger.info("Processing file: %s, Size: %s bytes", request.filename, request.original_size)

        await run_in_threadpool(storage.download, request.file_path)

        result = self.compress(request.original_size)
        logger.info(
            "Compression complete: %s -> %s bytes (%s%% reduction)",
            result.original_size, result.compressed_size, result.savings_percent,
        )

        record = FileRecord(
            user_id=owner.id,
            filename=request.filename,
            original_size=result.original_size,
            compressed_size=result.compressed_size,
            storage_path=request.file_path,
            mime_type=request.mime_type,
            compression_ratio=result.compression_ratio,
        )
        db.add(record)
        try:
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        return CompressResponse(
            original_size=result.original_size,
            compressed_size=result.compressed_size,
            savings_percent=result.savings_percent,
            message=result.message,
        )


compression_service = CompressionService()
