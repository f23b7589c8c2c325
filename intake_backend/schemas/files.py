from __future__ import annotations

from intake_backend.schemas import CamelModel


class UploadUrlResponse(CamelModel):
    upload_url: str
    method: str = "PUT"
    expires_in: int
    secure_filename: str
    original_filename: str


class UploadResponse(CamelModel):
    success: bool = True
    filename: str
    size: int
    type: str


class DownloadUrlResponse(CamelModel):
    download_url: str
    expires_in: int
    filename: str
