"""HTTP API: health check and zip download of S3 folders."""

from __future__ import annotations

import argparse
import contextlib
import json
import logging
import os
from typing import AsyncIterator

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Mount, Route

from .constants import (
    API_DOWNLOAD_ALL_AS_ZIP_PATH,
    API_DOWNLOAD_MAIN_PATH,
    API_HEALTH_CHECK_PATH,
    API_SERVER_HOST_DEFAULT,
    API_SERVER_HOST_ENV_VAR,
    API_SERVER_PORT_DEFAULT,
    API_SERVER_PORT_ENV_VAR,
    SERVER_RUNNING_STATUS,
)
from .download_service import DownloadError, DownloadService
from .dto import DownloadRequest, Health

logger = logging.getLogger(__name__)

ZIP_CONTENT_TYPE = "application/zip; charset=utf-8"


def create_export_headers(filename: str) -> dict[str, str]:
    """Headers announcing a zip attachment named ``filename``."""
    if any(ord(char) < 32 or ord(char) == 127 for char in filename):
        raise ValueError(f"invalid header characters in file name {filename!r}")
    return {
        "content-type": ZIP_CONTENT_TYPE,
        "content-disposition": f'attachment; filename="{filename}"',
    }


def _is_json(content_type: str | None) -> bool:
    if not content_type:
        return False
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime == "application/json" or (mime.startswith("application/") and mime.endswith("+json"))


async def _health(request: Request) -> Response:
    return PlainTextResponse(Health(status=SERVER_RUNNING_STATUS).to_json())


def _download_endpoint(download_service: DownloadService):
    async def download(request: Request) -> Response:
        if not _is_json(request.headers.get("content-type")):
            return PlainTextResponse(
                "Expected request with `Content-Type: application/json`", status_code=415
            )
        try:
            payload = json.loads(await request.body())
        except (ValueError, UnicodeDecodeError) as exc:
            return PlainTextResponse(f"Failed to parse the request body as JSON: {exc}", status_code=400)
        try:
            download_request = DownloadRequest.from_dict(payload)
        except ValueError as exc:
            return PlainTextResponse(
                f"Failed to deserialize the JSON body into the target type: {exc}", status_code=422
            )

        try:
            filename, content = await download_service.download_files(
                download_request.bucket_name, download_request.full_path
            )
        except DownloadError:
            return Response(status_code=500)
        return Response(content, headers=create_export_headers(filename))

    return download


@contextlib.asynccontextmanager
async def _lifespan(app: Starlette) -> AsyncIterator[None]:
    yield
    logger.info("graceful_shutdown - app graceful_shutdown - starting...")
    logger.info("graceful_shutdown - app graceful_shutdown - done")


def create_app(download_service: DownloadService | None = None) -> Starlette:
    """Build the application with the health and download endpoints."""
    service = download_service if download_service is not None else DownloadService()
    routes = [
        Route(API_HEALTH_CHECK_PATH, _health, methods=["GET"]),
        Mount(
            API_DOWNLOAD_MAIN_PATH,
            routes=[Route(API_DOWNLOAD_ALL_AS_ZIP_PATH, _download_endpoint(service), methods=["POST"])],
        ),
    ]
    return Starlette(routes=routes, lifespan=_lifespan)


def server_address() -> tuple[str, int]:
    """Host and port to listen on, from the environment or the defaults."""
    host = os.environ.get(API_SERVER_HOST_ENV_VAR, API_SERVER_HOST_DEFAULT)
    port_text = os.environ.get(API_SERVER_PORT_ENV_VAR, API_SERVER_PORT_DEFAULT)
    if not port_text.isdigit() or not 0 <= int(port_text) <= 65535:
        raise ValueError(f"invalid server port {port_text!r}")
    return host, int(port_text)


def _configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")


def main(argv: list[str] | None = None) -> None:
    """Start the API server; it shuts down gracefully on Ctrl+C or SIGTERM."""
    parser = argparse.ArgumentParser(prog="s3zipper", description="Serve S3 folders as zip downloads.")
    parser.parse_args(argv)

    _configure_logging()
    logger.info("server - starting...")
    host, port = server_address()
    logger.info("server - listening on: %s:%d", host, port)
    uvicorn.run(create_app(), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()