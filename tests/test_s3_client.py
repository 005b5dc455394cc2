import hashlib
import re

import httpx
import pytest
import respx

from s3zipper.s3_client import (
    Credentials,
    ObjectSummary,
    S3Client,
    S3RequestError,
    create_s3_client,
)

ENDPOINT = "https://s3.test.example.com"
CREDENTIALS = Credentials("AKIDEXAMPLE", "secret")
EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

LISTING = b"""<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Name>bucket</Name>
  <Prefix>folder</Prefix>
  <Contents><Key>folder/a.txt</Key><Size>10</Size></Contents>
  <Contents><Key>folder/sub/b.txt</Key><Size>20</Size></Contents>
  <Contents><Key>folder/c.txt</Key></Contents>
</ListBucketResult>"""


@pytest.mark.asyncio
async def test_get_object_returns_body_and_signs_request():
    with respx.mock(base_url=ENDPOINT) as router:
        route = router.get("/bucket/folder/a.txt").respond(200, content=b"hello")
        async with S3Client(CREDENTIALS, "eu-west-1", ENDPOINT) as client:
            body = await client.get_object("bucket", "folder/a.txt")

    assert body == b"hello"
    request = route.calls.last.request
    authorization = request.headers["authorization"]
    assert authorization.startswith("AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/")
    assert "/eu-west-1/s3/aws4_request, " in authorization
    assert "SignedHeaders=host;x-amz-content-sha256;x-amz-date, " in authorization
    assert re.search(r"Signature=[0-9a-f]{64}$", authorization)
    assert request.headers["x-amz-content-sha256"] == EMPTY_SHA256
    assert re.fullmatch(r"\d{8}T\d{6}Z", request.headers["x-amz-date"])


@pytest.mark.asyncio
async def test_session_token_is_sent_and_signed():
    credentials = Credentials("AKIDEXAMPLE", "secret", "token")
    with respx.mock(base_url=ENDPOINT) as router:
        route = router.get("/bucket/a.txt").respond(200, content=b"x")
        async with S3Client(credentials, "eu-west-1", ENDPOINT) as client:
            await client.get_object("bucket", "a.txt")

    request = route.calls.last.request
    assert request.headers["x-amz-security-token"] == "token"
    assert "SignedHeaders=host;x-amz-content-sha256;x-amz-date;x-amz-security-token," in (
        request.headers["authorization"]
    )


@pytest.mark.asyncio
async def test_put_object_sends_body_with_its_hash():
    with respx.mock(base_url=ENDPOINT) as router:
        route = router.put("/bucket/folder/a.txt").respond(200)
        async with S3Client(CREDENTIALS, "eu-west-1", ENDPOINT) as client:
            result = await client.put_object("bucket", "folder/a.txt", b"data")

    assert result is None
    request = route.calls.last.request
    assert request.content == b"data"
    assert request.headers["x-amz-content-sha256"] == hashlib.sha256(b"data").hexdigest()


@pytest.mark.asyncio
async def test_keys_are_percent_encoded_but_slashes_kept():
    with respx.mock(base_url=ENDPOINT) as router:
        route = router.route(method="PUT").respond(200)
        async with S3Client(CREDENTIALS, "eu-west-1", ENDPOINT) as client:
            await client.put_object("bucket", "folder/a b.txt", b"data")

    assert route.calls.last.request.url.raw_path == b"/bucket/folder/a%20b.txt"


@pytest.mark.asyncio
async def test_list_objects_parses_contents_and_sends_prefix():
    with respx.mock(base_url=ENDPOINT) as router:
        route = router.get("/bucket").respond(200, content=LISTING)
        async with S3Client(CREDENTIALS, "eu-west-1", ENDPOINT) as client:
            summaries = await client.list_objects("bucket", "folder")

    assert summaries == [
        ObjectSummary("folder/a.txt", 10),
        ObjectSummary("folder/sub/b.txt", 20),
        ObjectSummary("folder/c.txt", None),
    ]
    assert route.calls.last.request.url.params["prefix"] == "folder"


@pytest.mark.asyncio
async def test_list_objects_rejects_malformed_xml():
    with respx.mock(base_url=ENDPOINT) as router:
        router.get("/bucket").respond(200, content=b"not xml <")
        async with S3Client(CREDENTIALS, "eu-west-1", ENDPOINT) as client:
            with pytest.raises(S3RequestError):
                await client.list_objects("bucket", "folder")


@pytest.mark.asyncio
async def test_error_response_raises_with_code_and_status():
    error_body = (
        b"<Error><Code>NoSuchKey</Code>"
        b"<Message>The specified key does not exist.</Message></Error>"
    )
    with respx.mock(base_url=ENDPOINT) as router:
        router.get("/bucket/missing.txt").respond(404, content=error_body)
        async with S3Client(CREDENTIALS, "eu-west-1", ENDPOINT) as client:
            with pytest.raises(S3RequestError) as info:
                await client.get_object("bucket", "missing.txt")

    assert info.value.status_code == 404
    assert info.value.code == "NoSuchKey"
    assert "The specified key does not exist." in str(info.value)


@pytest.mark.asyncio
async def test_transport_failure_raises_request_error():
    with respx.mock(base_url=ENDPOINT) as router:
        router.get("/bucket/a.txt").mock(side_effect=httpx.ConnectError("refused"))
        async with S3Client(CREDENTIALS, "eu-west-1", ENDPOINT) as client:
            with pytest.raises(S3RequestError) as info:
                await client.get_object("bucket", "a.txt")

    assert info.value.status_code is None


@pytest.mark.asyncio
async def test_external_http_client_is_left_open():
    http_client = httpx.AsyncClient()
    client = S3Client(CREDENTIALS, "eu-west-1", ENDPOINT, http_client)
    await client.aclose()
    assert http_client.is_closed is False
    await http_client.aclose()
    assert http_client.is_closed is True


@pytest.mark.asyncio
async def test_default_endpoint_follows_region(monkeypatch):
    monkeypatch.delenv("AWS_ENDPOINT_URL_S3", raising=False)
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)
    async with S3Client(CREDENTIALS, "eu-west-1") as client:
        assert client.endpoint == "https://s3.eu-west-1.amazonaws.com"
        assert client.region == "eu-west-1"


def test_credentials_from_environment(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIDEXAMPLE")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")
    monkeypatch.delenv("AWS_SESSION_TOKEN", raising=False)
    credentials = Credentials.from_environment()
    assert credentials == Credentials("AKIDEXAMPLE", "secret", None)
    assert "secret" not in repr(credentials)


@pytest.mark.asyncio
async def test_create_s3_client_reads_environment(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIDEXAMPLE")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")
    monkeypatch.setenv("AWS_REGION", "ap-south-1")
    monkeypatch.delenv("AWS_ENDPOINT_URL_S3", raising=False)
    monkeypatch.setenv("AWS_ENDPOINT_URL", "http://localhost:9000/")
    client = create_s3_client()
    try:
        assert client.region == "ap-south-1"
        assert client.endpoint == "http://localhost:9000"
        assert client.credentials.access_key_id == "AKIDEXAMPLE"
    finally:
        await client.aclose()