"""
HTTP Envelope Schemas
Transport-neutral request/response objects used by the dispatcher.
"""

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class UploadedFile:
    """A file part decoded from a multipart body."""
    filename: str
    content: bytes
    content_type: Optional[str] = None


@dataclass
class ApiRequest:
    """An inbound HTTP request as seen by the dispatcher."""
    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, str] = field(default_factory=dict)
    path_params: Dict[str, str] = field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None
    is_base64_encoded: bool = False
    claims: Optional[Dict[str, Any]] = None

    @property
    def segments(self) -> List[str]:
        """Non-empty path segments."""
        return [segment for segment in self.path.split("/") if segment]

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def content_type(self) -> str:
        return self.header("content-type") or ""

    @property
    def is_multipart(self) -> bool:
        return self.content_type.lower().startswith("multipart/form-data")

    def raw_body(self) -> bytes:
        """Body bytes, base64-decoded when the envelope says so."""
        if self.body is None:
            return b""
        if self.is_base64_encoded:
            return base64.b64decode(self.body)
        if isinstance(self.body, bytes):
            return self.body
        return self.body.encode("utf-8")

    def json_body(self) -> Any:
        """Parse the body as JSON; an empty body is an empty object."""
        raw = self.raw_body()
        return json.loads(raw) if raw.strip() else {}


@dataclass
class ApiResponse:
    """Outbound response: status, headers, JSON-serialisable body."""
    status_code: int
    body: Any
    headers: Dict[str, str] = field(default_factory=dict)

    def encoded_body(self) -> str:
        return json.dumps(self.body, default=str)

    def to_lambda(self) -> Dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.encoded_body(),
        }
