"""
Response envelope shared by every router.
"""
import math
from typing import Any, Optional


def success(data: Any = None, message: Optional[str] = None, **extra) -> dict:
    """{"success": true, "message": ..., "data": ...}; None fields are left out."""
    body = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def pagination(page: int, limit: int, total: int) -> dict:
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "totalItems": total,
        "itemsPerPage": limit,
    }
