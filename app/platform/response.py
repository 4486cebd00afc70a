from typing import Any, Optional

from fastapi import Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(
    *,
    data: Optional[Any] = None,
    message: str = "Operation successful",
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """
    Wrap a payload in the shared envelope used by every JSON endpoint:

        {"status_code": ..., "status": "success" | "error", "message": ..., "data": ...}

    `status` is derived from the code (>= 400 is an error). Missing data is
    sent as an empty object so clients can always index into it.
    """
    envelope = {
        "status_code": status_code,
        "status": "error" if status_code >= 400 else "success",
        "message": message,
        "data": jsonable_encoder(data) if data is not None else {},
    }
    return JSONResponse(status_code=status_code, content=envelope)


def empty_response(status_code: int = status.HTTP_204_NO_CONTENT) -> Response:
    """Bodiless reply for deletes; 204 must not carry the envelope."""
    return Response(status_code=status_code)
