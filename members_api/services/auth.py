"""
Authorization
Reads identity/role claims attached by the gateway and applies the
member mutation and character-listing policies.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

GROUPS_CLAIM = "cognito:groups"

MEMBER_EDITOR_GROUPS = frozenset({"MemberEditors", "Deity", "Administrator"})
CHARACTER_VIEWER_GROUPS = frozenset({"Administrator", "Deity", "MemberEditor"})


@dataclass
class AuthResult:
    status_code: int
    message: str
    user_groups: List[str] = field(default_factory=list)

    @property
    def is_authorized(self) -> bool:
        return self.status_code == 200


def parse_groups(raw: Any) -> List[str]:
    """
    Normalise a groups claim to a list of names.

    Gateways deliver the claim as a list, a comma-separated string, or a
    bracketed string such as "[Deity Administrator]"; all are accepted.
    """
    if not raw:
        return []
    if isinstance(raw, (list, tuple, set)):
        return [str(g).strip() for g in raw if str(g).strip()]
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return [str(g).strip() for g in parsed if str(g).strip()]
        text = raw.strip()
        if text.startswith("[") and text.endswith("]"):
            parts = text[1:-1].replace(",", " ").split()
        else:
            parts = text.split(",")
        return [p.strip().strip("\"'") for p in parts if p.strip().strip("\"'")]
    return [str(raw)]


def extract_user_groups(claims: Optional[Dict[str, Any]]) -> List[str]:
    if not claims:
        return []
    return parse_groups(claims.get(GROUPS_CLAIM))


def extract_subject(claims: Optional[Dict[str, Any]]) -> Optional[str]:
    if not claims:
        return None
    return claims.get("sub") or None


def check_member_authorization(claims: Optional[Dict[str, Any]]) -> AuthResult:
    """Create/update/delete require one of the member editor groups."""
    user_groups = extract_user_groups(claims)
    if not MEMBER_EDITOR_GROUPS.intersection(user_groups):
        logger.info(f"[Auth] Member mutation denied for groups {user_groups}")
        return AuthResult(403, "Unauthorized - insufficient permissions", user_groups)
    return AuthResult(200, "Authorized", user_groups)


def check_character_access(
    claims: Optional[Dict[str, Any]],
    requested_sub: Optional[str] = None,
) -> AuthResult:
    """
    Anyone may list their own characters; listing another subject's
    characters needs a character viewer group.
    """
    if not claims:
        return AuthResult(401, "Unauthorized")

    current_sub = extract_subject(claims)
    if requested_sub and requested_sub != current_sub:
        user_groups = extract_user_groups(claims)
        if not CHARACTER_VIEWER_GROUPS.intersection(user_groups):
            logger.info(f"[Auth] Character listing for {requested_sub} denied to {current_sub}")
            return AuthResult(403, "Forbidden", user_groups)
        return AuthResult(200, "Authorized", user_groups)

    return AuthResult(200, "Authorized")
