"""Tests for parsing admin form submissions."""

import pytest

from object_sync.admin.submissions import (
    DeleteSubmission,
    EntityKind,
    FieldmapSubmission,
    Method,
    ObjectMapSubmission,
    parse_submission,
)
from object_sync.errors import ValidationError


def fieldmap_payload(**overrides):
    payload = {
        "method": "add",
        "label": "Contacts",
        "salesforce_object": "Contact",
        "wordpress_object": "user",
        "redirect_url_success": "http://localhost/admin?tab=fieldmaps",
        "redirect_url_error": "http://localhost/admin?tab=fieldmaps&method=add",
    }
    payload.update(overrides)
    return payload


class TestFieldmapSubmission:
    def test_valid_add(self):
        submission = parse_submission(fieldmap_payload(), "fieldmap")
        assert isinstance(submission, FieldmapSubmission)
        assert submission.method == Method.ADD
        assert submission.label == "Contacts"

    @pytest.mark.parametrize("field", ["label", "salesforce_object", "wordpress_object"])
    def test_missing_required_field(self, field):
        payload = fieldmap_payload()
        del payload[field]
        with pytest.raises(ValidationError) as exc:
            parse_submission(payload, EntityKind.FIELDMAP)
        assert field in exc.value.fields

    def test_empty_label_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_submission(fieldmap_payload(label=""), "fieldmap")
        assert exc.value.fields == ["label"]

    def test_whitespace_label_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_submission(fieldmap_payload(label="   "), "fieldmap")

    def test_edit_requires_id(self):
        with pytest.raises(ValidationError) as exc:
            parse_submission(fieldmap_payload(method="edit"), "fieldmap")
        assert exc.value.fields == ["id"]

    def test_unknown_method(self):
        with pytest.raises(ValidationError) as exc:
            parse_submission(fieldmap_payload(method="rename"), "fieldmap")
        assert exc.value.fields == ["method"]

    def test_method_argument_overrides_payload(self):
        submission = parse_submission(fieldmap_payload(method="add"), "fieldmap", method="clone")
        assert submission.method == Method.CLONE

    def test_extra_fields_kept_in_data(self):
        submission = parse_submission(
            fieldmap_payload(wordpress_field=["first_name"], salesforce_field=["FirstName"], transient="abc"),
            "fieldmap",
        )
        data = submission.data()
        assert data["wordpress_field"] == ["first_name"]
        assert "transient" not in data
        assert "redirect_url_error" not in data
        assert "method" not in data


class TestObjectMapSubmission:
    def test_valid_edit(self):
        submission = parse_submission(
            {"method": "edit", "id": "7", "wordpress_id": "5", "salesforce_id": "003xx"}, "object-map"
        )
        assert isinstance(submission, ObjectMapSubmission)
        assert submission.id == "7"

    def test_missing_salesforce_id(self):
        with pytest.raises(ValidationError) as exc:
            parse_submission({"method": "edit", "id": "7", "wordpress_id": "5"}, "object-map")
        assert exc.value.fields == ["salesforce_id"]

    def test_clone_is_not_supported(self):
        with pytest.raises(ValidationError):
            parse_submission({"method": "clone", "wordpress_id": "5", "salesforce_id": "003xx"}, "object-map")


class TestDeleteSubmission:
    def test_only_id_required(self):
        submission = parse_submission({"method": "delete", "id": "3"}, "fieldmap")
        assert isinstance(submission, DeleteSubmission)
        assert submission.kind == EntityKind.FIELDMAP

    def test_missing_id(self):
        with pytest.raises(ValidationError) as exc:
            parse_submission({"method": "delete"}, "object-map")
        assert exc.value.fields == ["id"]
