"""
Members API Router
Maps (method, path segments) to member, lookup and session operations and
wraps every outcome in a JSON response with CORS headers.

Routes:
    GET     /members
    GET     /members/member/{id}
    POST    /members/member
    PUT     /members/member/{id}
    PUT     /members/member/{id}/image
    DELETE  /members/member/{id}
    GET     /members/characters[?sub={id}]
    GET     /members/{classes|races|auras|groups}
    GET     /members/sessions/{memberId}[/count]
    OPTIONS any path
"""

import json
import logging
from typing import Any, Dict, Optional, Tuple

from members_api.api.multipart import parse_multipart_form
from members_api.schemas.http import ApiRequest, ApiResponse, UploadedFile
from members_api.schemas.results import ErrorCode, ServiceResult
from members_api.services.auth import (
    check_character_access,
    check_member_authorization,
    extract_subject,
)
from members_api.services.image import ImageService, ImageUploadResult
from members_api.services.member_service import MemberService
from members_api.services.sanitizer import (
    sanitize_create_member_request,
    sanitize_update_member_request,
)

logger = logging.getLogger(__name__)

RouteResult = Tuple[int, Any]

ROOT_SEGMENTS = ("members", "members-v2")
LOOKUP_SEGMENTS = ("classes", "races", "auras", "groups")
INVALID_ROUTE: RouteResult = (400, {"message": "Invalid route"})


def from_service(result: ServiceResult) -> RouteResult:
    return result.to_http()


class MembersRouter:
    """Top-level request dispatcher."""

    def __init__(
        self,
        member_service: MemberService,
        image_service: ImageService,
        cors_origin: str = "*",
    ):
        self.member_service = member_service
        self.image_service = image_service
        self.cors_origin = cors_origin
        self._handlers = {
            "GET": self.handle_get,
            "POST": self.handle_post,
            "PUT": self.handle_put,
            "DELETE": self.handle_delete,
        }

    def cors_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": self.cors_origin,
            "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type, Authorization",
            "Access-Control-Max-Age": "86400",
        }

    async def dispatch(self, request: ApiRequest) -> ApiResponse:
        """Route a request. Never raises; failures become 500 responses."""
        method = (request.method or "").upper()
        logger.info(f"{method} {request.path}")

        try:
            if method == "OPTIONS":
                status_code, body = 200, {"message": "OK"}
            elif method in self._handlers:
                status_code, body = await self._handlers[method](request)
            else:
                status_code, body = 405, {"message": "Method not allowed"}
        except Exception as e:
            logger.exception("Error in handler")
            status_code, body = 500, {"message": str(e)}

        return ApiResponse(status_code=status_code, body=body, headers=self.cors_headers())

    # --- GET -------------------------------------------------------------

    async def handle_get(self, request: ApiRequest) -> RouteResult:
        segments = request.segments
        if not segments or segments[0] not in ROOT_SEGMENTS:
            return INVALID_ROUTE

        if len(segments) == 1:
            return from_service(await self.member_service.get_all_members())

        resource = segments[1]
        if resource in LOOKUP_SEGMENTS and len(segments) == 2:
            return await self._get_lookup(resource)
        if resource == "member" and len(segments) <= 3:
            member_id = segments[2] if len(segments) == 3 else None
            if not member_id:
                return 400, {"message": "Member ID is required"}
            return from_service(await self.member_service.get_member_by_id(member_id))
        if resource == "characters" and len(segments) == 2:
            return await self._get_characters(request)
        if resource == "sessions":
            return await self._get_sessions(request, segments)

        return INVALID_ROUTE

    async def _get_lookup(self, resource: str) -> RouteResult:
        loaders = {
            "classes": self.member_service.get_classes,
            "races": self.member_service.get_races,
            "auras": self.member_service.get_auras,
            "groups": self.member_service.get_groups,
        }
        return from_service(await loaders[resource]())

    async def _get_characters(self, request: ApiRequest) -> RouteResult:
        requested_sub = request.query_params.get("sub") or request.path_params.get("sub")
        auth = check_character_access(request.claims, requested_sub)
        if not auth.is_authorized:
            return auth.status_code, {"message": auth.message}

        sub = requested_sub or extract_subject(request.claims)
        if not sub:
            return 400, {"message": "User ID required"}
        return from_service(await self.member_service.get_members_by_owner(sub))

    async def _get_sessions(self, request: ApiRequest, segments) -> RouteResult:
        member_id = segments[2] if len(segments) > 2 else request.path_params.get("id")
        if not member_id:
            return 400, {"message": "Member ID is required"}

        if len(segments) == 4 and segments[3] == "count":
            return from_service(await self.member_service.count_sessions_by_member_id(member_id))
        if len(segments) <= 3:
            return from_service(await self.member_service.get_sessions_by_member_id(member_id))
        return INVALID_ROUTE

    # --- mutations -------------------------------------------------------

    def _authorize(self, request: ApiRequest) -> Optional[RouteResult]:
        auth = check_member_authorization(request.claims)
        if not auth.is_authorized:
            return auth.status_code, {"message": auth.message or "Unauthorized"}
        return None

    def _is_member_path(self, segments, length: int) -> bool:
        return len(segments) == length and segments[0] in ROOT_SEGMENTS and segments[1] == "member"

    async def handle_post(self, request: ApiRequest) -> RouteResult:
        denied = self._authorize(request)
        if denied:
            return denied

        if self._is_member_path(request.segments, 2):
            return await self.create_member(request)
        return INVALID_ROUTE

    async def handle_put(self, request: ApiRequest) -> RouteResult:
        denied = self._authorize(request)
        if denied:
            return denied

        segments = request.segments
        if self._is_member_path(segments, 3):
            return await self.update_member(request, segments[2])
        if self._is_member_path(segments, 4) and segments[3] == "image":
            return await self.update_member_image(request, segments[2])
        return INVALID_ROUTE

    async def handle_delete(self, request: ApiRequest) -> RouteResult:
        denied = self._authorize(request)
        if denied:
            return denied

        if self._is_member_path(request.segments, 3):
            return from_service(await self.member_service.delete_member(request.segments[2]))
        return INVALID_ROUTE

    async def _read_member_payload(self, request: ApiRequest) -> Tuple[Any, Optional[UploadedFile]]:
        """JSON body, or multipart with a JSON ``data`` field and optional ``image`` file."""
        if not request.is_multipart:
            return request.json_body(), None

        form = await parse_multipart_form(request)
        member_data = json.loads(form.get("data") or "{}")
        upload = form.get("image")
        if not isinstance(upload, UploadedFile) or not upload.content:
            upload = None
        return member_data, upload

    async def create_member(self, request: ApiRequest) -> RouteResult:
        """
        Create a member, uploading the image first when one is attached.

        The image write and the member write are independent: if the member
        write fails the uploaded object is left in place.
        """
        member_data, upload = await self._read_member_payload(request)
        try:
            create_request = sanitize_create_member_request(member_data)
        except ValueError as e:
            return from_service(ServiceResult.fail(ErrorCode.VALIDATION_ERROR, str(e)))

        image_result: Optional[ImageUploadResult] = None
        if upload is not None:
            image_result = await self.image_service.upload_new(upload.content, upload.filename)

        if image_result and image_result.success:
            create_request.image = image_result.key

        result = await self.member_service.create_member(create_request)
        if not result.success:
            return from_service(result)

        body = dict(result.data)
        if image_result and not image_result.success:
            body["warning"] = (
                f"Member created successfully, but image was not uploaded: {image_result.error}"
            )
        return 201, body

    async def update_member(self, request: ApiRequest, member_id: str) -> RouteResult:
        member_data, upload = await self._read_member_payload(request)

        if isinstance(member_data, dict):
            body_id = member_data.get("id")
            if body_id not in (None, "") and str(body_id) != member_id:
                return 400, {"message": "Member ID in body does not match path"}

        try:
            updates = sanitize_update_member_request(member_data)
        except ValueError as e:
            return from_service(ServiceResult.fail(ErrorCode.VALIDATION_ERROR, str(e)))

        invalid = self.member_service.validate_update(member_id, updates)
        if invalid is not None:
            return from_service(invalid)

        image_result: Optional[ImageUploadResult] = None
        if upload is not None:
            existing = await self.member_service.get_member_by_id(member_id)
            if not existing.success:
                return from_service(existing)
            image_result = await self._store_member_image(upload, existing.data, member_id)
            if image_result.success:
                updates.image = image_result.key

        result = await self.member_service.update_member(member_id, updates)
        if not result.success:
            return from_service(result)

        body = dict(result.data)
        if image_result and not image_result.success:
            body["warning"] = (
                f"Member updated successfully, but image was not uploaded: {image_result.error}"
            )
        return 200, body

    async def _store_member_image(
        self, upload: UploadedFile, member: Dict[str, Any], member_id: str
    ) -> ImageUploadResult:
        """Overwrite the member's current object, or create one on first upload."""
        existing_key = member.get("image")
        if existing_key:
            result = await self.image_service.update_existing(
                upload.content, upload.filename, existing_key, member_id
            )
            if result.error_code != ErrorCode.NOT_FOUND:
                return result
            logger.warning(f"[Members] Image {existing_key} missing from store, uploading new object")
        return await self.image_service.upload_new(upload.content, upload.filename)

    async def update_member_image(self, request: ApiRequest, member_id: str) -> RouteResult:
        existing = await self.member_service.get_member_by_id(member_id)
        if not existing.success:
            return from_service(existing)

        image_key = existing.data.get("image")
        if not image_key:
            return 400, {"message": "Member has no existing image to update"}

        if not request.is_multipart:
            return 400, {"message": "No image file provided"}
        form = await parse_multipart_form(request)
        upload = form.get("image")
        if not isinstance(upload, UploadedFile) or not upload.content:
            return 400, {"message": "No image file provided"}

        result = await self.image_service.update_existing(
            upload.content, upload.filename, image_key, member_id
        )
        if result.success:
            return 200, {"image": result.key}
        if result.error_code == ErrorCode.NOT_FOUND:
            return 404, {"message": result.error}
        if result.error_code == ErrorCode.VALIDATION_ERROR:
            return 400, {"message": result.error}
        return 500, {"message": result.error}
