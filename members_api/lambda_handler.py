"""
Lambda Entry Point
Adapts API Gateway proxy events (REST payload 1.0 and HTTP API payload 2.0)
to the members dispatcher.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from members_api.api.deps import get_router
from members_api.core.config import get_settings
from members_api.core.logging_config import setup_logging
from members_api.schemas.http import ApiRequest

logger = logging.getLogger(__name__)


def extract_claims(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Authorizer claims from either payload version, or None."""
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    claims = authorizer.get("claims")
    if claims is None:
        claims = (authorizer.get("jwt") or {}).get("claims")
    return claims or None


def event_to_request(event: Dict[str, Any]) -> ApiRequest:
    request_context = event.get("requestContext") or {}
    http = request_context.get("http") or {}

    method = event.get("httpMethod") or http.get("method") or ""
    path = event.get("path") or event.get("rawPath") or http.get("path") or "/"

    return ApiRequest(
        method=method,
        path=path,
        headers=event.get("headers") or {},
        query_params=event.get("queryStringParameters") or {},
        path_params=event.get("pathParameters") or {},
        body=event.get("body"),
        is_base64_encoded=bool(event.get("isBase64Encoded")),
        claims=extract_claims(event),
    )


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    setup_logging(get_settings().LOG_LEVEL)
    request = event_to_request(event)
    response = asyncio.run(get_router().dispatch(request))
    return response.to_lambda()
