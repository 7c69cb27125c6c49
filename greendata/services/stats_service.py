"""
Storage aggregation for the dashboard and admin views.

Everything here is recomputed from the full row set on each call; there is no
stored aggregate.
"""
import math
from typing import Iterable, List, Sequence

UNKNOWN_NAME = "Unknown"
_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(num_bytes: int) -> str:
    """Human readable 1024-based size, ``"0 B"`` for zero."""
    if num_bytes == 0:
        return "0 B"
    sign = "-" if num_bytes < 0 else ""
    value = abs(num_bytes)
    i = min(int(math.floor(math.log(value) / math.log(1024))), len(_UNITS) - 1)
    i = max(i, 0)
    return f"{sign}{value / math.pow(1024, i):.2f} {_UNITS[i]}"


def savings_percent(original: int, compressed: int) -> str:
    if original <= 0:
        return "0"
    return f"{(original - compressed) / original * 100:.1f}"


def row_savings_percent(original_size: int, compressed_size: int) -> str:
    if original_size <= 0:
        return "0"
    return f"{(original_size - compressed_size) / original_size * 100:.1f}"


def summarize_files(records: Sequence) -> dict:
    total_original = sum(int(r.original_size) for r in records)
    total_compressed = sum(int(r.compressed_size) for r in records)
    total_savings = total_original - total_compressed
    return {
        "total_files": len(records),
        "total_original_size": total_original,
        "total_compressed_size": total_compressed,
        "total_savings": total_savings,
        "savings_percent": savings_percent(total_original, total_compressed),
        "storage_used": format_bytes(total_compressed),
        "space_saved": format_bytes(total_savings),
    }


def summarize_users(profiles: Iterable) -> List[dict]:
    """Per-profile file count and compressed storage, from each profile's loaded ``files``."""
    usage = []
    for profile in profiles:
        files = profile.files or []
        total_size = sum(int(f.compressed_size) for f in files)
        usage.append({
            "id": profile.id,
            "email": profile.email,
            "full_name": profile.full_name or UNKNOWN_NAME,
            "file_count": len(files),
            "total_size": total_size,
            "storage_used": format_bytes(total_size),
        })
    return usage


def admin_overview(profile_count: int, records: Sequence, profiles: Iterable) -> dict:
    totals = summarize_files(records)
    return {
        "total_users": profile_count,
        "total_files": totals["total_files"],
        "total_original_size": totals["total_original_size"],
        "total_compressed_size": totals["total_compressed_size"],
        "savings_percent": totals["savings_percent"],
        "storage_used": totals["storage_used"],
        "space_saved": totals["space_saved"],
        "users": summarize_users(profiles),
    }
