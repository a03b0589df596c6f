"""
Multipart Decoding
Parses multipart/form-data bodies with Starlette's form parser.
"""

from typing import Any, AsyncGenerator, Dict

from starlette.datastructures import Headers, UploadFile
from starlette.formparsers import MultiPartParser

from members_api.schemas.http import ApiRequest, UploadedFile


async def _single_chunk(body: bytes) -> AsyncGenerator[bytes, None]:
    yield body
    yield b""


async def parse_multipart_form(request: ApiRequest) -> Dict[str, Any]:
    """
    Decode a multipart body into {field: str | UploadedFile}.

    Raises ValueError when the request is not multipart/form-data.
    """
    if not request.is_multipart:
        raise ValueError("Invalid content-type, expected multipart/form-data")

    headers = Headers(headers={"content-type": request.content_type})
    parser = MultiPartParser(headers, _single_chunk(request.raw_body()))
    form = await parser.parse()

    fields: Dict[str, Any] = {}
    try:
        for name, value in form.multi_items():
            if isinstance(value, UploadFile):
                fields[name] = UploadedFile(
                    filename=value.filename or "",
                    content=await value.read(),
                    content_type=value.content_type,
                )
            else:
                fields[name] = value
    finally:
        await form.close()
    return fields
