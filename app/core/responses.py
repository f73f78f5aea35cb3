from __future__ import annotations

import math
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def ok(data: Any = None, *, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    """
    Success envelope:
    {"success": true, "data": ..., "message": "..."}
    """
    payload: Dict[str, Any] = {"success": True, "data": data}
    if message is not None:
        payload["message"] = message
    # jsonable_encoder handles datetime/date/Decimal/Enum
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def err(
    message: str,
    *,
    status_code: int = 400,
    error: Optional[str] = None,
    errors: Optional[list] = None,
) -> JSONResponse:
    """
    Failure envelope:
    {"success": false, "message": "...", "error": "...", "errors": [...]}
    """
    payload: Dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        payload["error"] = error
    if errors is not None:
        payload["errors"] = errors
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def pagination(*, page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "current_page": page,
        "total_pages": math.ceil(total / limit) if limit else 0,
        "total_items": total,
        "items_per_page": limit,
    }
