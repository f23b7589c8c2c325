"""
Presigned upload/download gateway.

Hands out short-lived URLs carrying a signed token, and serves the PUT/GET
requests made against them. Files live flat under one base directory; the
token's filename is always reduced to its basename before touching disk.
"""

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Optional
from urllib.parse import quote

from intake_backend.config import Settings
from intake_backend.errors import (
    FileNotFound,
    FileTooLarge,
    InvalidFilename,
    MissingParameter,
    StorageWriteFailure,
    UnsupportedFileType,
)
from intake_backend.services.file_tokens import FileTokenSigner
from intake_backend.services.filenames import generate_secure_filename, validate_filename

logger = logging.getLogger("intake_backend.services.file_gateway")

# First four bytes (hex) -> detected type.
ALLOWED_SIGNATURES = {
    "ffd8ffe0": "jpg",
    "ffd8ffe1": "jpg",
    "ffd8ffe2": "jpg",
    "89504e47": "png",
    "47494638": "gif",
    "52494646": "webp",  # RIFF container
    "25504446": "pdf",
}

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".json": "application/json",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class UploadGrant:
    upload_url: str
    method: str
    expires_in: int
    secure_filename: str
    original_filename: str


@dataclass(frozen=True)
class UploadResult:
    filename: str
    size: int
    type: str


@dataclass(frozen=True)
class DownloadGrant:
    download_url: str
    expires_in: int
    filename: str


@dataclass(frozen=True)
class DownloadTicket:
    path: Path
    filename: str
    size: int
    content_type: str
    cache_control: str
    content_disposition: str


def detect_file_type(data: bytes) -> Optional[str]:
    return ALLOWED_SIGNATURES.get(data[:4].hex().lower())


def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(PurePath(filename).suffix.lower(), DEFAULT_CONTENT_TYPE)


class FileGateway:
    """Issues presigned URLs and performs the guarded filesystem I/O."""

    def __init__(
        self,
        *,
        base_dir: Path,
        signer: FileTokenSigner,
        public_base_url: str,
        ttl_seconds: int = 300,
        max_bytes: int = 10 * 1024 * 1024,
    ) -> None:
        self.base_dir = Path(base_dir)
        self.signer = signer
        self.public_base_url = public_base_url.rstrip("/")
        self.ttl_seconds = ttl_seconds
        self.max_bytes = max_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileGateway":
        return cls(
            base_dir=settings.file_upload_base_dir,
            signer=FileTokenSigner(
                settings.file_upload_secret,
                default_ttl=settings.file_token_ttl_seconds,
            ),
            public_base_url=settings.public_base_url,
            ttl_seconds=settings.file_token_ttl_seconds,
            max_bytes=settings.file_max_upload_bytes,
        )

    # ------------------------------------------------------------------
    # Path handling
    # ------------------------------------------------------------------
    def resolve_path(self, filename: str) -> Path:
        """Map a token's filename to a path directly under base_dir."""
        # Strip both separator styles, whatever the host OS.
        name = filename.replace("\\", "/").rsplit("/", 1)[-1]
        if not name or name in (".", ".."):
            raise InvalidFilename()
        return self.base_dir / name

    def _link(self, endpoint: str, token: str) -> str:
        return f"{self.public_base_url}/files/{endpoint}?token={quote(token, safe='')}"

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------
    def issue_upload_url(self, original_filename: Optional[str]) -> UploadGrant:
        if not original_filename or not original_filename.strip():
            raise MissingParameter("filename required")

        secure_filename = generate_secure_filename(original_filename)
        if not validate_filename(secure_filename):
            raise InvalidFilename("invalid filename")

        token = self.signer.create(secure_filename, self.ttl_seconds)
        logger.info("Issued upload URL for %s (ttl=%ss)", secure_filename, self.ttl_seconds)
        return UploadGrant(
            upload_url=self._link("upload", token),
            method="PUT",
            expires_in=self.ttl_seconds,
            secure_filename=secure_filename,
            original_filename=original_filename,
        )

    def accept_upload(self, token: Optional[str], body: bytes) -> UploadResult:
        if not token:
            raise MissingParameter("missing token")

        payload = self.signer.verify(token)
        dest = self.resolve_path(payload.filename)

        detected = detect_file_type(body)
        if detected is None:
            raise UnsupportedFileType("unsupported file type")

        if len(body) > self.max_bytes:
            raise FileTooLarge("file too large")

        self._write(dest, body)
        logger.info("Stored upload %s (%d bytes, type=%s)", dest.name, len(body), detected)
        return UploadResult(filename=payload.filename, size=len(body), type=detected)

    def _write(self, dest: Path, body: bytes) -> None:
        # Write beside the target then rename, so readers never see a half file.
        tmp = dest.with_name(f".{dest.name}.{secrets.token_hex(4)}.part")
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(body)
            os.replace(tmp, dest)
        except OSError as exc:
            logger.exception("Failed to write upload to %s", dest)
            try:
                tmp.unlink()
            except OSError:
                logger.debug("No partial file to clean up at %s", tmp)
            raise StorageWriteFailure("failed to write file") from exc

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------
    def issue_download_url(self, filename: Optional[str]) -> DownloadGrant:
        if not filename:
            raise MissingParameter("filename required")
        if not validate_filename(filename):
            raise InvalidFilename("invalid filename")

        token = self.signer.create(filename, self.ttl_seconds)
        logger.info("Issued download URL for %s (ttl=%ss)", filename, self.ttl_seconds)
        return DownloadGrant(
            download_url=self._link("download", token),
            expires_in=self.ttl_seconds,
            filename=filename,
        )

    def open_download(self, token: Optional[str]) -> DownloadTicket:
        if not token:
            raise MissingParameter("missing token")

        payload = self.signer.verify(token)
        path = self.resolve_path(payload.filename)
        if not path.is_file():
            raise FileNotFound("file not found")

        basename = path.name
        return DownloadTicket(
            path=path,
            filename=basename,
            size=path.stat().st_size,
            content_type=content_type_for(basename),
            cache_control=f"private, max-age={self.ttl_seconds}",
            content_disposition=f'inline; filename="{basename}"',
        )
