"""
Request sanitizer tests.
"""

import pytest

from members_api.services.sanitizer import (
    sanitize_create_member_request,
    sanitize_update_member_request,
    to_number,
)


class TestToNumber:
    def test_integral_strings_become_int(self):
        assert to_number("5", "level") == 5
        assert isinstance(to_number("5.0", "level"), int)

    def test_fractional_values_stay_float(self):
        assert to_number("180.5", "weight") == 180.5

    @pytest.mark.parametrize("bad", ["abc", "nan", "inf", float("inf")])
    def test_rejects_non_finite_or_garbage(self, bad):
        with pytest.raises(ValueError):
            to_number(bad, "hp")


class TestCreateSanitizer:
    def test_defaults_for_omitted_fields(self):
        request = sanitize_create_member_request({"name": "  Aldric  "})
        assert request.name == "Aldric"
        assert request.hp == 1
        assert request.level == 1
        assert request.weight == 0
        assert request.born is None
        assert request.classes == []
        assert request.colour_hex is None

    def test_numeric_strings_are_parsed(self):
        request = sanitize_create_member_request({"name": "A", "level": "5", "born": "312"})
        assert request.level == 5
        assert request.born == 312

    def test_explicit_zero_is_treated_as_absent(self):
        # Known quirk: falsy numbers fall back to the create defaults
        request = sanitize_create_member_request({"name": "A", "hp": 0, "level": 0, "weight": 0})
        assert request.hp == 1
        assert request.level == 1
        assert request.weight == 0

    def test_non_list_associations_become_empty(self):
        request = sanitize_create_member_request({"name": "A", "classes": "c1", "groups": None})
        assert request.classes == []
        assert request.groups == []

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            sanitize_create_member_request(["not", "an", "object"])


class TestUpdateSanitizer:
    def test_only_present_fields_are_set(self):
        updates = sanitize_update_member_request({"name": "Aldric II"})
        assert updates.changes() == {"name": "Aldric II"}

    def test_zero_is_kept_on_update(self):
        assert sanitize_update_member_request({"hp": 0}).changes() == {"hp": 0}

    def test_explicit_null_clears_field(self):
        changes = sanitize_update_member_request({"title": None, "died": None, "tower_id": None}).changes()
        assert changes == {"title": None, "died": None, "tower_id": None}

    def test_null_name_becomes_empty_string(self):
        assert sanitize_update_member_request({"name": None}).changes() == {"name": ""}

    def test_empty_input_has_no_changes(self):
        updates = sanitize_update_member_request({})
        assert updates.changes() == {}

    def test_unknown_fields_are_dropped(self):
        assert sanitize_update_member_request({"id": "abc", "bogus": 1}).changes() == {}
