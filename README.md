# s3zipper

A small HTTP service that downloads the files stored directly under a folder of
an S3 bucket and returns them to the caller as one zip archive.

## Installation

```
pip install .
```

## Running the server

```
s3zipper
```

The command takes no options. It serves the application with uvicorn on
`0.0.0.0:8097` by default, logs at INFO level to standard error, and stops
cleanly on Ctrl+C or SIGTERM.

### Configuration

| Variable                     | Default    | Meaning                                                    |
|------------------------------|------------|------------------------------------------------------------|
| `API_SERVER_HOST`            | `0.0.0.0`  | Address to bind                                            |
| `API_SERVER_PORT`            | `8097`     | Port to bind (0 to 65535; anything else is refused)        |
| `AWS_S3_MAX_FILE_QUANTITY`   | `100`      | Most files a folder may hold before the request fails      |
| `AWS_S3_MAX_FILE_SIZE_BYTES` | `2097152`  | Objects of this size or larger are left out of the archive |

A limit that is not a whole number counts as 0.

S3 access is configured through the usual environment variables:
`AWS_ACCESS_KEY_ID`, `AWS_SECRET_ACCESS_KEY`, `AWS_SESSION_TOKEN`,
`AWS_REGION` (or `AWS_DEFAULT_REGION`, falling back to `us-east-1`) and, for
S3-compatible stores, `AWS_ENDPOINT_URL_S3` or `AWS_ENDPOINT_URL`. Requests are
path-style and signed with Signature Version 4.

## Endpoints

### `GET /health`

Answers with the text:

```
{"status":"server is running"}
```

### `POST /api/v1/download/zip`

Request body, sent with `Content-Type: application/json`:

```json
{"bucket_name": "my-bucket", "full_path": "reports/2024"}
```

One leading and one trailing slash of `full_path` are ignored. On success the
response is `application/zip; charset=utf-8` with the attachment name
`s3-export.zip`. It holds every object directly inside the folder that is under
the size limit; objects in nested sub-folders are not included.

Error answers:

- 415 when the body is not declared as JSON,
- 400 when the body is not valid JSON,
- 422 when `bucket_name` or `full_path` is missing or not a string,
- 500 when S3 cannot be reached, the listing fails, the folder holds more files
  than the configured maximum, or the archive would contain the same name twice.

A single object that fails to download while the others succeed is written to
the archive as an empty entry with an empty name.

## Using it as a library

```python
from s3zipper.download_service import DownloadService
from s3zipper.s3_client import create_s3_client
from s3zipper.s3_service import S3Service

service = DownloadService(S3Service.from_environment(create_s3_client))
filename, archive = await service.download_files("my-bucket", "reports/2024")
```

- `s3zipper.app.create_app(download_service)` builds the Starlette application
  for any ASGI server.
- `s3zipper.s3_service.S3Service` offers `add_s3_object`, `get_s3_object`,
  `get_s3_object_key_list`, `get_s3_objects_by_path` and
  `get_s3_objects_by_keys`; failures raise `s3zipper.errors.S3ServiceError`,
  whose `kind` is a `CommonError`.
- `s3zipper.s3_client.S3Client` is the underlying asynchronous client with
  `put_object`, `get_object` and `list_objects`; it raises `S3RequestError` and
  can be used as an async context manager.

## What it does not do

- The HTTP API only downloads; uploading is available from `S3Service` in code
  but has no endpoint.
- Logging cannot be configured from a file; the server always logs at INFO
  level in a fixed format.
- Object listings are read from a single response page; very large folders are
  not paged through.

## Tests

```
pip install .[test]
pytest
```