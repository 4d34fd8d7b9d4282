"""Failure values passed between the upload guard, the inference pipeline,
the prediction store and the HTTP layer.

Every stage returns either its result or a ``Failure``; the HTTP layer turns a
``Failure`` into a response through ``ERROR_RESPONSES`` and nowhere else.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from fastapi.responses import JSONResponse

from config import MAX_UPLOAD_BYTES


class ErrorKind(enum.Enum):
    INVALID_INPUT = "InvalidInput"
    PAYLOAD_TOO_LARGE = "PayloadTooLarge"
    MODEL_UNAVAILABLE = "ModelUnavailable"
    INFERENCE_ERROR = "InferenceError"
    STORE_UNAVAILABLE = "StoreUnavailable"


ERROR_RESPONSES = {
    ErrorKind.INVALID_INPUT: (400, "Invalid request"),
    ErrorKind.PAYLOAD_TOO_LARGE: (
        413, f"Payload content length greater than maximum allowed: {MAX_UPLOAD_BYTES}"),
    ErrorKind.MODEL_UNAVAILABLE: (500, "Model has not been loaded successfully"),
    ErrorKind.INFERENCE_ERROR: (500, "An error occurred while making the prediction"),
    ErrorKind.STORE_UNAVAILABLE: (500, "An error occurred while accessing the prediction store"),
}


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    # only honoured for 4xx kinds; 5xx messages stay generic
    message: Optional[str] = None

    @property
    def status_code(self) -> int:
        return ERROR_RESPONSES[self.kind][0]

    @property
    def client_message(self) -> str:
        status_code, default = ERROR_RESPONSES[self.kind]
        if self.message and status_code < 500:
            return self.message
        return default


def failure_response(failure: Failure) -> JSONResponse:
    return JSONResponse(
        content={"status": "fail", "message": failure.client_message},
        status_code=failure.status_code,
    )
