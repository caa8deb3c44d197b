"""Upload API routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from imgrelay.core.middleware import get_client_id
from imgrelay.ingest.pipeline import IngestionPipeline
from imgrelay.models.asset import FromBody, FromURL
from imgrelay.models.upload import ErrorResponse, UploadFromUrlRequest, UploadResponse
from imgrelay.storage.factory import get_pipeline

router = APIRouter(tags=["upload"])
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    501: {"model": ErrorResponse},
}


@router.post("/upload-from-url", response_model=UploadResponse, responses=ERROR_RESPONSES)
async def upload_from_url(
    request: Request,
    payload: Optional[UploadFromUrlRequest] = Body(None),
    url: Optional[str] = Query(None),
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> UploadResponse:
    """Copy a remote image into the object store.

    The URL comes from the JSON body, or from the ``url`` query parameter
    when the body carries none.
    """
    source_url = (payload.url if payload else None) or url
    result = await pipeline.ingest(FromURL(source_url=source_url or ""), get_client_id(request))
    return UploadResponse(url=result.url)


@router.post("/upload-from-body", response_model=UploadResponse, responses=ERROR_RESPONSES)
async def upload_from_body(
    request: Request,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> UploadResponse:
    """Store the raw request body as an image."""
    upload = FromBody(headers=request.headers, body=request.stream())
    result = await pipeline.ingest(upload, get_client_id(request))
    return UploadResponse(url=result.url)
