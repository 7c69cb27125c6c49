from types import SimpleNamespace

import pytest

from greendata.services import stats_service


def record(original, compressed):
    return SimpleNamespace(original_size=original, compressed_size=compressed)


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "0 B"),
        (1, "1.00 B"),
        (1023, "1023.00 B"),
        (1024, "1.00 KB"),
        (1536, "1.50 KB"),
        (1_000_000, "976.56 KB"),
        (5 * 1024 ** 3, "5.00 GB"),
        (3 * 1024 ** 5, "3072.00 TB"),
        (-2048, "-2.00 KB"),
    ],
)
def test_format_bytes(value, expected):
    assert stats_service.format_bytes(value) == expected


def test_empty_record_set():
    stats = stats_service.summarize_files([])
    assert stats == {
        "total_files": 0,
        "total_original_size": 0,
        "total_compressed_size": 0,
        "total_savings": 0,
        "savings_percent": "0",
        "storage_used": "0 B",
        "space_saved": "0 B",
    }


def test_totals_match_records():
    records = [record(1000, 600), record(2048, 1024), record(500, 300)]
    stats = stats_service.summarize_files(records)
    assert stats["total_files"] == 3
    assert stats["total_original_size"] == 3548
    assert stats["total_compressed_size"] == sum(r.compressed_size for r in records)
    assert stats["total_savings"] == 3548 - 1924
    assert stats["savings_percent"] == "45.8"
    assert stats["storage_used"] == "1.88 KB"


def test_row_savings_percent():
    assert stats_service.row_savings_percent(1000, 600) == "40.0"
    assert stats_service.row_savings_percent(0, 0) == "0"


def test_summarize_users_defaults_unknown_name():
    profiles = [
        SimpleNamespace(id=1, email="a@example.com", full_name=None, files=[record(100, 60), record(10, 7)]),
        SimpleNamespace(id=2, email="b@example.com", full_name="Bea", files=[]),
    ]
    usage = stats_service.summarize_users(profiles)
    assert usage[0] == {
        "id": 1,
        "email": "a@example.com",
        "full_name": "Unknown",
        "file_count": 2,
        "total_size": 67,
        "storage_used": "67.00 B",
    }
    assert usage[1]["full_name"] == "Bea"
    assert usage[1]["file_count"] == 0
    assert usage[1]["total_size"] == 0


def test_admin_overview():
    a_files = [record(100, 60)]
    b_files = [record(200, 130)]
    profiles = [
        SimpleNamespace(id=1, email="a@example.com", full_name="A", files=a_files),
        SimpleNamespace(id=2, email="b@example.com", full_name="B", files=b_files),
    ]
    overview = stats_service.admin_overview(3, a_files + b_files, profiles)
    assert overview["total_users"] == 3
    assert overview["total_files"] == 2
    assert overview["total_original_size"] == 300
    assert overview["total_compressed_size"] == 190
    assert overview["savings_percent"] == "36.7"
    assert [u["total_size"] for u in overview["users"]] == [60, 130]
