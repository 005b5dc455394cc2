"""Folder-level S3 operations: upload, download and listing with configured limits."""

from __future__ import annotations

import asyncio
import logging
import os
import re
from typing import Callable, Iterable

from .constants import (
    AWS_S3_MAX_FILE_QUANTITY_DEFAULT,
    AWS_S3_MAX_FILE_QUANTITY_ENV_VAR,
    AWS_S3_MAX_FILE_SIZE_BYTES_DEFAULT,
    AWS_S3_MAX_FILE_SIZE_BYTES_ENV_VAR,
)
from .errors import CommonError, S3ServiceError
from .s3_client import S3Client, S3RequestError, create_s3_client

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")

ClientFactory = Callable[[], S3Client]


def sanitize_path(path: str) -> str:
    """Drop one leading and one trailing slash so nested folders are not matched."""
    if path.startswith("/"):
        path = path[1:]
    if path.endswith("/"):
        path = path[:-1]
    return path


def env_int(name: str, default: str) -> int:
    """Read an integer environment variable; an unparsable value yields 0."""
    value = os.environ.get(name, default)
    if not _INTEGER.fullmatch(value):
        return 0
    return int(value)


class S3Service:
    """S3 operations scoped to a single folder of a bucket."""

    def __init__(
        self,
        client_factory: ClientFactory = create_s3_client,
        max_file_quantity: int = int(AWS_S3_MAX_FILE_QUANTITY_DEFAULT),
        max_file_size: int = int(AWS_S3_MAX_FILE_SIZE_BYTES_DEFAULT),
    ) -> None:
        self._client_factory = client_factory
        self.max_file_quantity = max_file_quantity
        self.max_file_size = max_file_size

    @classmethod
    def from_environment(cls, client_factory: ClientFactory = create_s3_client) -> "S3Service":
        """Build a service whose limits come from the environment."""
        quantity = env_int(AWS_S3_MAX_FILE_QUANTITY_ENV_VAR, AWS_S3_MAX_FILE_QUANTITY_DEFAULT)
        return cls(
            client_factory=client_factory,
            max_file_quantity=max(quantity, 0),
            max_file_size=env_int(AWS_S3_MAX_FILE_SIZE_BYTES_ENV_VAR, AWS_S3_MAX_FILE_SIZE_BYTES_DEFAULT),
        )

    async def add_s3_object(self, bucket_name: str, path: str, s3_key: str, content: bytes) -> str:
        """Upload ``content`` as ``s3_key`` inside ``path``; return the key."""
        logger.debug("add_s3_object - start")
        if not bucket_name or not path or not s3_key or not content:
            logger.error(
                "add_s3_object - empty bucket name, path, s3 key or content - bucket name: %s, path: %s, s3 key: %s",
                bucket_name,
                path,
                s3_key,
            )
            raise S3ServiceError(CommonError.NO_VALID_INPUT_OR_PARAMETER, "empty bucket name, path, key or content")

        async with self._client_factory() as client:
            try:
                await client.put_object(bucket_name, f"{sanitize_path(path)}/{s3_key}", bytes(content))
            except S3RequestError as exc:
                logger.error("add_s3_object - upload error - bucket name: %s, s3 key: %s", bucket_name, s3_key)
                raise S3ServiceError(CommonError.AWS_ACCESS_ERROR, f"upload of {s3_key} failed") from exc

        logger.debug("add_s3_object - done")
        return s3_key

    async def get_s3_object(self, bucket_name: str, path: str, s3_key: str) -> tuple[str, bytes]:
        """Return the key and content of one object inside ``path``."""
        logger.debug("get_s3_object - start - bucket: %s, path: %s, key: %s", bucket_name, path, s3_key)
        async with self._client_factory() as client:
            try:
                result = await _get_s3_object_content(client, bucket_name, path, s3_key)
            except S3RequestError as exc:
                logger.error(
                    "get_s3_object - s3 object not found - bucket name: %s, path: %s, s3 key: %s",
                    bucket_name,
                    path,
                    s3_key,
                )
                raise S3ServiceError(CommonError.AWS_ACCESS_ERROR, f"object {s3_key} not found") from exc
        logger.debug("get_s3_object - done")
        return result

    async def get_s3_object_key_list(self, bucket_name: str, path: str) -> list[str]:
        """List the keys of the files directly inside ``path`` that are under the size limit."""
        logger.debug("get_s3_object_key_list - start - bucket: %s, path: %s", bucket_name, path)
        folder = sanitize_path(path)
        async with self._client_factory() as client:
            try:
                summaries = await client.list_objects(bucket_name, folder)
            except S3RequestError as exc:
                logger.error(
                    "get_s3_object_key_list - s3 object key list not found - error: %s, bucket name: %s, path: %s",
                    exc,
                    bucket_name,
                    path,
                )
                raise S3ServiceError(CommonError.AWS_ACCESS_ERROR, "object listing failed") from exc

        prefix = f"{folder}/"
        keys = []
        for summary in summaries:
            if summary.key is None or (summary.size or 0) >= self.max_file_size:
                continue
            if not summary.key.startswith(prefix):
                logger.error("get_s3_object_key_list - key outside of folder: %s", summary.key)
                raise S3ServiceError(CommonError.AWS_ACCESS_ERROR, f"key {summary.key} is outside of {prefix}")
            name = summary.key[len(prefix):]
            if "/" not in name:
                keys.append(name)

        if len(keys) > self.max_file_quantity:
            logger.error(
                "get_s3_object_key_list - more objects than the configured maximum - bucket name: %s, path: %s",
                bucket_name,
                path,
            )
            raise S3ServiceError(CommonError.AWS_ACCESS_ERROR, "too many objects")

        logger.debug("get_s3_object_key_list - done")
        return keys

    async def get_s3_objects_by_path(self, bucket_name: str, path: str) -> list[tuple[str, bytes]]:
        """Download every listed file inside ``path``; a failed download yields ``("", b"")``."""
        logger.debug("get_s3_objects_by_path - start - bucket: %s, path: %s", bucket_name, path)
        keys = await self._listed_keys("get_s3_objects_by_path", bucket_name, path)
        found = await self._fetch_all(bucket_name, path, keys)
        logger.debug("get_s3_objects_by_path - done")
        return found

    async def get_s3_objects_by_keys(
        self, bucket_name: str, path: str, s3_keys: Iterable[str]
    ) -> tuple[list[tuple[str, bytes]], list[str]]:
        """Download the listed files named in ``s3_keys``; also return the listed keys not requested."""
        wanted = set(s3_keys)
        logger.debug("get_s3_objects_by_keys - start - bucket: %s, path: %s, keys: %s", bucket_name, path, wanted)
        keys = await self._listed_keys("get_s3_objects_by_keys", bucket_name, path)

        requested = []
        not_found = []
        for key in keys:
            if key in wanted:
                requested.append(key)
            else:
                logger.warning("get_s3_objects_by_keys - s3 key not found: %s", key)
                not_found.append(key)

        found = await self._fetch_all(bucket_name, path, requested)
        logger.debug("get_s3_objects_by_keys - done")
        return found, not_found

    async def _listed_keys(self, caller: str, bucket_name: str, path: str) -> list[str]:
        try:
            return await self.get_s3_object_key_list(bucket_name, path)
        except S3ServiceError as exc:
            logger.error(
                "%s - s3 objects not found - error: %s, bucket name: %s, path: %s",
                caller,
                exc,
                bucket_name,
                path,
            )
            raise S3ServiceError(CommonError.AWS_ACCESS_ERROR, "objects not found") from exc

    async def _fetch_all(self, bucket_name: str, path: str, keys: list[str]) -> list[tuple[str, bytes]]:
        async with self._client_factory() as client:
            results = await asyncio.gather(
                *(_get_s3_object_content(client, bucket_name, path, key) for key in keys),
                return_exceptions=True,
            )
        found = []
        for result in results:
            if isinstance(result, S3RequestError):
                found.append(("", b""))
            elif isinstance(result, BaseException):
                raise result
            else:
                found.append(result)
        return found


async def _get_s3_object_content(client: S3Client, bucket_name: str, path: str, s3_key: str) -> tuple[str, bytes]:
    logger.debug("get_s3_object_content - start")
    try:
        content = await client.get_object(bucket_name, f"{sanitize_path(path)}/{s3_key}")
    except S3RequestError as exc:
        logger.error(
            "get_s3_object_content - s3 object not found - error: %s, bucket name: %s, path: %s, s3 key: %s",
            exc,
            bucket_name,
            path,
            s3_key,
        )
        raise
    logger.debug("get_s3_object_content - done")
    return s3_key, content