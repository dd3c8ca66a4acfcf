"""Tests for core domain models."""

from dataclasses import FrozenInstanceError
from datetime import UTC, datetime

import pytest

from wings.core.models import (
    AccessLevel,
    LegacyRecord,
    NormalizedResource,
    Permission,
    ResourceId,
    normalize_values,
)
from wings.tests.fakes import Book, BookResource


class TestNormalizeValues:
    def test_none_is_empty(self):
        assert normalize_values(None) == ()

    def test_string_is_single_value(self):
        assert normalize_values("Comet in Moominland") == ("Comet in Moominland",)

    def test_list_becomes_tuple(self):
        assert normalize_values(["a", "b"]) == ("a", "b")

    def test_scalar_is_single_value(self):
        assert normalize_values(42) == (42,)


class TestResourceId:
    def test_present(self):
        assert ResourceId("abc").present is True

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_is_not_present(self, value):
        assert ResourceId(value).present is False

    def test_str(self):
        assert str(ResourceId("abc")) == "abc"


class TestLegacyRecord:
    def test_attribute_values_are_normalized(self):
        record = Book(attributes={"title": "Comet in Moominland", "author": ["Tove Jansson"]})
        assert record.attributes == {
            "title": ("Comet in Moominland",),
            "author": ("Tove Jansson",),
        }

    def test_unknown_property_rejected(self):
        with pytest.raises(ValueError, match="publisher"):
            Book(attributes={"publisher": "WSOY"})

    def test_open_schema_accepts_anything(self):
        record = LegacyRecord(attributes={"anything": "goes"})
        assert record.attributes["anything"] == ("goes",)

    def test_modified_before_created_rejected(self):
        with pytest.raises(ValueError):
            Book(
                create_date=datetime(2024, 2, 1, tzinfo=UTC),
                modified_date=datetime(2024, 1, 1, tzinfo=UTC),
            )

    def test_defaults(self):
        record = Book()
        assert record.id is None
        assert record.new_record is True
        assert record.permissions == []


class TestNormalizedResource:
    def test_attributes_are_read_only(self):
        resource = BookResource(attributes={"title": "Comet"})
        with pytest.raises(TypeError):
            resource.attributes["title"] = ("Other",)  # type: ignore[index]

    def test_resource_is_frozen(self):
        resource = BookResource()
        with pytest.raises(FrozenInstanceError):
            resource.new_record = False  # type: ignore[misc]

    def test_string_id_is_wrapped(self):
        resource = BookResource(id="book-1")  # type: ignore[arg-type]
        assert resource.id == ResourceId("book-1")

    def test_item_access(self):
        resource = BookResource(attributes={"title": "Comet"})
        assert resource["title"] == ("Comet",)
        assert resource.get("author") == ()

    def test_with_attributes_returns_copy(self):
        resource = BookResource(id=ResourceId("book-1"), attributes={"title": "Comet"})
        updated = resource.with_attributes(title=["Mumintrollet på kometjakt"])

        assert isinstance(updated, BookResource)
        assert updated["title"] == ("Mumintrollet på kometjakt",)
        assert updated.id == resource.id
        assert resource["title"] == ("Comet",)

    def test_with_attributes_accepts_mapping(self):
        resource = BookResource(attributes={"title": "Comet"})
        updated = resource.with_attributes({"dc:title": "Comet"}, author="Tove")

        assert updated["dc:title"] == ("Comet",)
        assert updated["author"] == ("Tove",)
        assert updated["title"] == ("Comet",)

    def test_access_to_must_match_a_permission(self):
        permission = Permission(mode=AccessLevel.READ, agent="alice", access_to=ResourceId("x"))
        with pytest.raises(ValueError, match="access_to"):
            NormalizedResource(permissions=(permission,), access_to=ResourceId("y"))

    def test_access_to_matching_permission_accepted(self):
        permission = Permission(mode=AccessLevel.READ, agent="alice", access_to=ResourceId("x"))
        resource = NormalizedResource(permissions=[permission], access_to=ResourceId("x"))  # type: ignore[arg-type]
        assert resource.permissions == (permission,)
        assert resource.access_to == ResourceId("x")

    def test_human_readable_type_from_class_name(self):
        assert BookResource.human_readable_type == "Book Resource"
        assert NormalizedResource.human_readable_type == "Resource"


class TestPermission:
    def test_group_detection(self):
        assert Permission(mode=AccessLevel.EDIT, agent="group/editors").is_group
        assert not Permission(mode=AccessLevel.EDIT, agent="alice").is_group
