import random

import pytest
from sqlalchemy import select

from conftest import InMemoryStorage
from greendata.models.file import FileRecord
from greendata.schemas.compression import CompressRequest
from greendata.services.compression_service import CompressionService
from greendata.services.storage_service import ObjectNotFoundError


def test_ratio_stays_in_range():
    service = CompressionService(rng=random.Random(7))
    ratios = [service.draw_ratio() for _ in range(2000)]
    assert all(0.3 <= r < 0.5 for r in ratios)


@pytest.mark.parametrize("size", [1_000, 65_536, 1_000_000, 7_340_033])
def test_compressed_size_bounds(size):
    service = CompressionService(rng=random.Random(size))
    for _ in range(200):
        result = service.compress(size)
        assert 0.5 * size - 1 <= result.compressed_size <= 0.7 * size
        assert result.compressed_size <= result.original_size


def test_compress_uses_floor_and_reports_one_decimal():
    result = CompressionService().compress(1000, ratio=0.4321)
    assert result.compressed_size == 567
    assert result.savings_percent == "43.2"
    assert result.compression_ratio == pytest.approx(43.21)
    assert result.message == "File compressed successfully! Saved 43.2% of storage space."


def test_savings_reproducible_from_sizes():
    service = CompressionService(rng=random.Random(3))
    for _ in range(100):
        result = service.compress(1_000_000)
        derived = (result.original_size - result.compressed_size) / result.original_size * 100
        assert abs(derived - float(result.savings_percent)) <= 0.06


def test_zero_bytes():
    result = CompressionService().compress(0, ratio=0.35)
    assert result.compressed_size == 0


async def test_process_records_file_for_owner(db, owner):
    storage = InMemoryStorage()
    storage.objects["1/1700000000000-report.pdf"] = b"%PDF"
    service = CompressionService(rng=random.Random(1))

    response = await service.process(
        db,
        storage,
        owner,
        CompressRequest(
            file_path="1/1700000000000-report.pdf",
            filename="report.pdf",
            original_size=1_000_000,
            mime_type="application/pdf",
        ),
    )

    rows = (await db.execute(select(FileRecord))).scalars().all()
    assert len(rows) == 1
    row = rows[0]
    assert row.user_id == owner.id
    assert row.storage_path == "1/1700000000000-report.pdf"
    assert row.compressed_size == response.compressed_size
    assert row.compression_ratio == pytest.approx(float(response.savings_percent), abs=0.05)
    assert response.success is True
    assert 500_000 <= response.compressed_size <= 700_000


async def test_process_without_object_records_nothing(db, owner):
    service = CompressionService()
    with pytest.raises(ObjectNotFoundError):
        await service.process(
            db,
            InMemoryStorage(),
            owner,
            CompressRequest(file_path="1/0-missing.txt", filename="missing.txt", original_size=10),
        )
    assert (await db.execute(select(FileRecord))).scalars().all() == []
