import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import FileResponse

from intake_backend.config import Settings, get_settings
from intake_backend.schemas.files import DownloadUrlResponse, UploadResponse, UploadUrlResponse
from intake_backend.services.file_gateway import FileGateway

logger = logging.getLogger("intake_backend.routers.files")

router = APIRouter(
    prefix="/files",
    tags=["files"],
)


def get_file_gateway(settings: Settings = Depends(get_settings)) -> FileGateway:
    return FileGateway.from_settings(settings)


@router.get(
    "/upload-url",
    response_model=UploadUrlResponse,
    summary="Issue a presigned upload URL",
    description=(
        "Replaces the client's filename with a generated secure filename and "
        "returns a short-lived PUT URL bound to it."
    ),
)
def get_upload_url(
    filename: Optional[str] = Query(default=None),
    gateway: FileGateway = Depends(get_file_gateway),
) -> UploadUrlResponse:
    grant = gateway.issue_upload_url(filename)
    return UploadUrlResponse(
        upload_url=grant.upload_url,
        method=grant.method,
        expires_in=grant.expires_in,
        secure_filename=grant.secure_filename,
        original_filename=grant.original_filename,
    )


@router.put(
    "/upload",
    response_model=UploadResponse,
    summary="Upload file bytes against a presigned token",
)
async def put_upload(
    request: Request,
    token: Optional[str] = Query(default=None),
    gateway: FileGateway = Depends(get_file_gateway),
) -> UploadResponse:
    body = await request.body()
    result = gateway.accept_upload(token, body)
    return UploadResponse(filename=result.filename, size=result.size, type=result.type)


@router.get(
    "/download-url",
    response_model=DownloadUrlResponse,
    summary="Issue a presigned download URL",
)
def get_download_url(
    filename: Optional[str] = Query(default=None),
    gateway: FileGateway = Depends(get_file_gateway),
) -> DownloadUrlResponse:
    grant = gateway.issue_download_url(filename)
    return DownloadUrlResponse(
        download_url=grant.download_url,
        expires_in=grant.expires_in,
        filename=grant.filename,
    )


@router.get(
    "/download",
    summary="Stream a stored file against a presigned token",
    response_class=FileResponse,
)
def get_download(
    token: Optional[str] = Query(default=None),
    gateway: FileGateway = Depends(get_file_gateway),
) -> FileResponse:
    ticket = gateway.open_download(token)
    logger.info("Serving download %s (%d bytes)", ticket.filename, ticket.size)
    return FileResponse(
        ticket.path,
        media_type=ticket.content_type,
        headers={
            "Content-Disposition": ticket.content_disposition,
            "Cache-Control": ticket.cache_control,
        },
    )
