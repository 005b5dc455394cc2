"""Small asynchronous Amazon S3 client signing requests with Signature Version 4."""

from __future__ import annotations

import hashlib
import hmac
import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime, timezone
from urllib.parse import quote, urlsplit

import httpx

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"
_SERVICE = "s3"
_ALGORITHM = "AWS4-HMAC-SHA256"
_UNRESERVED = "-_.~"


class S3RequestError(Exception):
    """Raised when S3 cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


@dataclass(frozen=True)
class Credentials:
    """AWS access credentials."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str | None = field(default=None, repr=False)

    @classmethod
    def from_environment(cls) -> "Credentials":
        """Read credentials from the standard AWS environment variables."""
        return cls(
            access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", ""),
            secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", ""),
            session_token=os.environ.get("AWS_SESSION_TOKEN") or None,
        )


@dataclass(frozen=True)
class ObjectSummary:
    """One entry of a bucket listing."""

    key: str | None
    size: int | None


def _encode(value: str) -> str:
    return quote(value, safe=_UNRESERVED)


def _local(tag: str) -> str:
    return tag.rpartition("}")[2]


def _sign(
    credentials: Credentials,
    region: str,
    method: str,
    host: str,
    canonical_uri: str,
    canonical_query: str,
    payload: bytes,
    timestamp: datetime,
) -> dict[str, str]:
    amz_date = timestamp.strftime("%Y%m%dT%H%M%SZ")
    date_stamp = amz_date[:8]
    payload_hash = hashlib.sha256(payload).hexdigest()

    headers = {"host": host, "x-amz-content-sha256": payload_hash, "x-amz-date": amz_date}
    if credentials.session_token:
        headers["x-amz-security-token"] = credentials.session_token

    names = sorted(headers)
    signed_headers = ";".join(names)
    canonical_headers = "".join(f"{name}:{headers[name].strip()}\n" for name in names)
    canonical_request = "\n".join(
        [method, canonical_uri, canonical_query, canonical_headers, signed_headers, payload_hash]
    )

    scope = f"{date_stamp}/{region}/{_SERVICE}/aws4_request"
    string_to_sign = "\n".join(
        [_ALGORITHM, amz_date, scope, hashlib.sha256(canonical_request.encode()).hexdigest()]
    )

    key = ("AWS4" + credentials.secret_access_key).encode()
    for part in (date_stamp, region, _SERVICE, "aws4_request"):
        key = hmac.new(key, part.encode(), hashlib.sha256).digest()
    signature = hmac.new(key, string_to_sign.encode(), hashlib.sha256).hexdigest()

    headers["authorization"] = (
        f"{_ALGORITHM} Credential={credentials.access_key_id}/{scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )
    return headers


def _error_from_response(response: httpx.Response) -> S3RequestError:
    code = None
    message = f"S3 answered with HTTP {response.status_code}"
    try:
        root = ET.fromstring(response.content)
    except ET.ParseError:
        root = None
    if root is not None:
        fields = {_local(child.tag): (child.text or "") for child in root}
        code = fields.get("Code") or None
        if fields.get("Message"):
            message = f"{message}: {fields['Message']}"
    return S3RequestError(message, status_code=response.status_code, code=code)


class S3Client:
    """Path-style S3 client covering the object operations the service needs."""

    def __init__(
        self,
        credentials: Credentials | None = None,
        region: str | None = None,
        endpoint: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.credentials = credentials or Credentials.from_environment()
        self.region = (
            region
            or os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
            or DEFAULT_REGION
        )
        self.endpoint = (
            endpoint
            or os.environ.get("AWS_ENDPOINT_URL_S3")
            or os.environ.get("AWS_ENDPOINT_URL")
            or f"https://s3.{self.region}.amazonaws.com"
        ).rstrip("/")
        self._owns_http = http_client is None
        self._http = http_client if http_client is not None else httpx.AsyncClient()

    async def put_object(self, bucket: str, key: str, body: bytes) -> None:
        """Store ``body`` under ``key``."""
        await self._send("PUT", bucket, key, body=bytes(body))

    async def get_object(self, bucket: str, key: str) -> bytes:
        """Return the content stored under ``key``."""
        response = await self._send("GET", bucket, key)
        return response.content

    async def list_objects(self, bucket: str, prefix: str | None = None) -> list[ObjectSummary]:
        """List the objects of ``bucket`` whose keys start with ``prefix``."""
        params = {} if prefix is None else {"prefix": prefix}
        response = await self._send("GET", bucket, params=params)
        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as exc:
            raise S3RequestError("malformed object listing", response.status_code) from exc

        summaries = []
        for element in root:
            if _local(element.tag) != "Contents":
                continue
            fields = {_local(child.tag): (child.text or "") for child in element}
            size = fields.get("Size")
            try:
                parsed_size = int(size) if size else None
            except ValueError as exc:
                raise S3RequestError(f"invalid object size {size!r}", response.status_code) from exc
            summaries.append(ObjectSummary(key=fields.get("Key"), size=parsed_size))
        return summaries

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this client created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "S3Client":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def _send(
        self,
        method: str,
        bucket: str,
        key: str = "",
        params: dict[str, str] | None = None,
        body: bytes = b"",
    ) -> httpx.Response:
        split = urlsplit(self.endpoint)
        canonical_uri = f"{split.path.rstrip('/')}/{_encode(bucket)}"
        if key:
            canonical_uri += "/" + quote(key, safe="/" + _UNRESERVED)
        canonical_query = "&".join(
            f"{_encode(name)}={_encode(value)}" for name, value in sorted((params or {}).items())
        )
        headers = _sign(
            self.credentials,
            self.region,
            method,
            split.netloc,
            canonical_uri,
            canonical_query,
            body,
            datetime.now(timezone.utc),
        )
        url = f"{split.scheme}://{split.netloc}{canonical_uri}"
        if canonical_query:
            url += "?" + canonical_query

        logger.debug("s3 request - %s %s", method, url)
        try:
            response = await self._http.request(
                method, url, headers=headers, content=body if method == "PUT" else None
            )
        except httpx.HTTPError as exc:
            raise S3RequestError(f"{method} {canonical_uri} failed: {exc}") from exc

        if response.is_success:
            return response
        raise _error_from_response(response)


def create_s3_client() -> S3Client:
    """Create a client configured from the standard AWS environment variables."""
    logger.debug("create_s3_client - start")
    client = S3Client()
    logger.debug("create_s3_client - done")
    return client