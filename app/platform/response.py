from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(
    *,
    data: Optional[Any] = None,
    message: str = "Operation successful",
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """
    Single source of truth for successful API responses.
    """
    data = jsonable_encoder(data) if data is not None else {}

    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "status_code": status_code,
            "message": message,
            "data": data,
        },
    )


def api_error(
    *,
    error: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    errors: Optional[dict[str, list[str]]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Failure envelope shared by every exception handler."""
    content: dict[str, Any] = {
        "success": False,
        "status_code": status_code,
        "error": error,
    }
    if errors:
        content["errors"] = errors

    return JSONResponse(status_code=status_code, content=content, headers=headers)
