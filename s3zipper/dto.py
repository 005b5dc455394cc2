"""Request and response payloads of the HTTP API."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Mapping


def _require_str(data: Mapping[str, Any], name: str) -> str:
    if not isinstance(data, Mapping):
        raise ValueError("expected a JSON object")
    if name not in data:
        raise ValueError(f"missing field `{name}`")
    value = data[name]
    if not isinstance(value, str):
        raise ValueError(f"field `{name}` must be a string")
    return value


@dataclass
class DownloadRequest:
    """A request to download every file of an S3 folder."""

    bucket_name: str
    full_path: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DownloadRequest":
        """Build a request from decoded JSON; unknown fields are ignored."""
        return cls(
            bucket_name=_require_str(data, "bucket_name"),
            full_path=_require_str(data, "full_path"),
        )

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class Health:
    """Health check response."""

    status: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Health":
        return cls(status=_require_str(data, "status"))

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    def to_json(self) -> str:
        """Compact JSON encoding of the health status."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)