"""Unit tests for the wire models."""

import pytest
from pydantic import ValidationError

from content_graph.models import FieldDefinition, FieldType, FileMetadata, LinkSys, Locale, ResourceType, Sys


class TestSys:
    def test_unwraps_content_type_link(self) -> None:
        sys = Sys.model_validate(
            {
                "id": "nyancat",
                "type": "Entry",
                "revision": 5,
                "createdAt": "2013-06-27T22:46:19.513Z",
                "contentType": {"sys": {"type": "Link", "linkType": "ContentType", "id": "cat"}},
            }
        )
        assert sys.content_type_id == "cat"
        assert sys.created_at is not None and sys.created_at.year == 2013
        assert sys.revision == 5

    @pytest.mark.parametrize("raw", [{"type": "Entry"}, {"id": "nyancat"}], ids=["no-id", "no-type"])
    def test_requires_id_and_type(self, raw: dict) -> None:
        with pytest.raises(ValidationError):
            Sys.model_validate(raw)

    def test_is_immutable(self) -> None:
        sys = Sys(id="nyancat", type="Entry")
        with pytest.raises(ValidationError):
            sys.id = "other"  # type: ignore[misc]


def test_locale_reads_fallback_code() -> None:
    locale = Locale.model_validate({"code": "de-DE", "name": "German", "fallbackCode": "en-US"})
    assert locale.fallback_code == "en-US"
    assert not locale.default


def test_field_definition_item_type_for_arrays() -> None:
    symbols = FieldDefinition.model_validate({"id": "tags", "type": "Array", "items": {"type": "Symbol"}})
    assert symbols.items_type == FieldType.SYMBOL
    assert symbols.item_type == "Symbol"

    assets = FieldDefinition.model_validate(
        {"id": "images", "type": "Array", "items": {"type": "Link", "linkType": "Asset"}}
    )
    assert assets.item_type == "Asset"


def test_file_metadata_adds_scheme() -> None:
    file = FileMetadata.model_validate(
        {"fileName": "cat.png", "contentType": "image/png", "url": "//images.example.net/cat.png"}
    )
    assert file.url == "https://images.example.net/cat.png"
    assert file.details is None


def test_link_sys_reads_link_type() -> None:
    link = LinkSys.model_validate({"type": "Link", "linkType": "Asset", "id": "logo"})
    assert link.link_type == ResourceType.ASSET
    assert link.id == "logo"
