"""Upload API models."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class UploadFromUrlRequest(BaseModel):
    """Request model for ingesting an image from a remote URL."""

    url: Optional[str] = Field(None, description="Source URL of the image")


class UploadResponse(BaseModel):
    """Response model for a successful ingestion."""

    success: Literal[True] = True
    url: str


class ErrorResponse(BaseModel):
    """Response model for every failed request."""

    error: str
