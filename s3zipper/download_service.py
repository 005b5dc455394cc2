"""Downloads every file of an S3 folder and packs them into one zip archive."""

from __future__ import annotations

import io
import logging
import zipfile
from typing import Protocol

from .errors import S3ServiceError
from .s3_service import S3Service

logger = logging.getLogger(__name__)

EXPORT_FILE_NAME = "s3-export.zip"


class DownloadError(Exception):
    """Raised when the files of a folder cannot be downloaded or packed."""


class _ObjectSource(Protocol):
    async def get_s3_objects_by_path(self, bucket_name: str, path: str) -> list[tuple[str, bytes]]: ...


def _build_zip(files: list[tuple[str, bytes]]) -> bytes:
    buffer = io.BytesIO()
    names: set[str] = set()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in files:
            if name in names:
                raise DownloadError(f"duplicate file name in archive: {name!r}")
            names.add(name)
            archive.writestr(name, content)
    return buffer.getvalue()


class DownloadService:
    """Builds zip exports of S3 folders.

    The number and size of the files downloaded are bounded by the limits of
    the underlying S3 service.
    """

    def __init__(self, s3_service: _ObjectSource | None = None) -> None:
        self._s3_service = s3_service if s3_service is not None else S3Service.from_environment()

    async def download_files(self, s3_bucket: str, s3_path: str) -> tuple[str, bytes]:
        """Return the export file name and the zip content of every file in the folder."""
        logger.info("download_files - start")
        try:
            s3_files = await self._s3_service.get_s3_objects_by_path(s3_bucket, s3_path)
        except S3ServiceError as exc:
            logger.error(
                "download_files - download error - can't get files from s3 bucket: %s, s3 path: %s",
                s3_bucket,
                s3_path,
            )
            raise DownloadError(f"cannot get files from {s3_bucket}/{s3_path}") from exc

        logger.info(
            "download_files - download files completed - s3 bucket: %s, s3 path: %s, s3 files total: %d",
            s3_bucket,
            s3_path,
            len(s3_files),
        )
        logger.info("download_files - create zip file - start")
        content = _build_zip(s3_files)
        logger.info("download_files - create zip file - done")
        logger.info("download_files - done")
        return EXPORT_FILE_NAME, content