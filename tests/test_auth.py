"""
Authorization policy tests.
"""

import pytest

from members_api.schemas.results import ErrorCode
from members_api.services.auth import (
    check_character_access,
    check_member_authorization,
    extract_user_groups,
    parse_groups,
)


class TestParseGroups:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (["Deity", "Player"], ["Deity", "Player"]),
            ("Administrator", ["Administrator"]),
            ("Deity,Player", ["Deity", "Player"]),
            ("[Deity Administrator]", ["Deity", "Administrator"]),
            ('["MemberEditors"]', ["MemberEditors"]),
            (None, []),
            ("", []),
        ],
    )
    def test_claim_shapes(self, raw, expected):
        assert parse_groups(raw) == expected

    def test_string_and_list_forms_agree(self):
        as_string = extract_user_groups({"cognito:groups": "Administrator"})
        as_list = extract_user_groups({"cognito:groups": ["Administrator"]})
        assert as_string == as_list


class TestMemberAuthorization:
    def test_player_is_denied(self):
        result = check_member_authorization({"sub": "u1", "cognito:groups": ["Player"]})
        assert result.status_code == 403
        assert not result.is_authorized
        assert result.error_code == ErrorCode.FORBIDDEN

    @pytest.mark.parametrize("group", ["MemberEditors", "Deity", "Administrator"])
    def test_editor_groups_are_allowed(self, group):
        assert check_member_authorization({"cognito:groups": group}).is_authorized

    def test_missing_claims_are_denied(self):
        assert check_member_authorization(None).status_code == 403

    def test_singular_member_editor_cannot_mutate(self):
        # "MemberEditor" only grants character viewing
        assert not check_member_authorization({"cognito:groups": ["MemberEditor"]}).is_authorized


class TestCharacterAccess:
    def test_no_claims_is_unauthorized(self):
        result = check_character_access(None, "someone")
        assert result.status_code == 401
        assert result.error_code == ErrorCode.UNAUTHORIZED

    def test_own_characters_without_sub(self):
        assert check_character_access({"sub": "alice"}).is_authorized

    def test_own_characters_with_matching_sub(self):
        assert check_character_access({"sub": "alice"}, "alice").is_authorized

    def test_other_subject_needs_viewer_group(self):
        result = check_character_access({"sub": "alice", "cognito:groups": ["Player"]}, "bob")
        assert result.status_code == 403

    @pytest.mark.parametrize("group", ["Administrator", "Deity", "MemberEditor"])
    def test_viewer_groups_can_list_others(self, group):
        claims = {"sub": "alice", "cognito:groups": group}
        assert check_character_access(claims, "bob").is_authorized
