# src/costkube/api/schemas.py
"""
Pydantic response schemas for the API.
Every JSON endpoint answers with the same envelope.
"""

from typing import Any, Optional

from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field


class DataEnvelope(BaseModel):
    """Response envelope shared by all JSON endpoints."""

    code: int = Field(200, description="HTTP status code of the response.")
    status: str = Field("success", description="'success' or 'error'.")
    data: Optional[Any] = Field(None, description="Endpoint payload.")
    message: Optional[str] = Field(None, description="Informational or error message.")


class HealthResponse(BaseModel):
    """Payload of the health check endpoint."""

    status: str = Field(..., description="Health status of the API.")
    version: str = Field(..., description="Current application version.")


def success(data: Any, message: Optional[str] = None) -> JSONResponse:
    envelope = DataEnvelope(code=200, status="success", data=jsonable_encoder(data), message=message)
    return JSONResponse(status_code=200, content=envelope.model_dump())


def error(code: int, message: str) -> JSONResponse:
    envelope = DataEnvelope(code=code, status="error", message=message)
    return JSONResponse(status_code=code, content=envelope.model_dump())
