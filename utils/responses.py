from typing import Any, Optional, Sequence

from Schema.common_schema import Pagination


def success_response(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def page_response(key: str, items: Sequence, pagination: Pagination) -> dict:
    """List envelope: ``{success, data: {<key>: [...], pagination}}``."""
    return success_response({key: list(items), "pagination": pagination})
