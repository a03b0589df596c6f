"""
Members API - Guild Roster Service
FastAPI Backend Entry Point

Serves the same routes as the Lambda handler for local development and
container deployments.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import jwt
from fastapi import FastAPI, Request, Response

from members_api import __version__
from members_api.api.deps import get_router, get_storage_service, get_vector_service
from members_api.core.config import settings
from members_api.core.logging_config import setup_logging
from members_api.schemas.http import ApiRequest

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Starting {settings.APP_NAME}...")
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(
    title=settings.APP_NAME,
    description="Guild roster members, lookups, sessions and member media",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


def claims_from_authorization(header: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Read claims from a Bearer token.

    The signature is not checked here; tokens are verified by the gateway
    in front of this service.
    """
    if not header or not header.lower().startswith("bearer "):
        return None
    token = header.split(" ", 1)[1].strip()
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        logger.warning(f"[Auth] Ignoring unreadable bearer token: {e}")
        return None


@app.get("/health", tags=["Health"])
async def health_check():
    """Report configured backends and vector index reachability."""
    vector_service = get_vector_service()
    status = {
        "status": "healthy",
        "version": __version__,
        "environment": {
            "storage": get_storage_service().backend,
            "vectors": vector_service.backend,
        },
        "services": {},
    }

    try:
        stats = await vector_service.get_stats()
        status["services"]["vectors"] = "ok"
        status["services"]["vector_count"] = stats["total_vectors"]
    except Exception as e:
        status["services"]["vectors"] = f"error: {str(e)}"
        status["status"] = "degraded"

    return status


@app.api_route(
    "/{full_path:path}",
    methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    tags=["Members"],
)
async def members_proxy(full_path: str, request: Request):
    """Forward every other request to the members dispatcher."""
    api_request = ApiRequest(
        method=request.method,
        path=request.url.path,
        headers=dict(request.headers),
        query_params=dict(request.query_params),
        path_params={},
        body=await request.body(),
        claims=claims_from_authorization(request.headers.get("authorization")),
    )
    api_response = await get_router().dispatch(api_request)
    return Response(
        content=api_response.encoded_body(),
        status_code=api_response.status_code,
        headers=api_response.headers,
        media_type="application/json",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("members_api.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
