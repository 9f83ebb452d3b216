import pytest

from content_graph.core.link import (
    Link,
    convert_links,
    is_link_list,
    is_links_key,
    iter_rich_text_targets,
    make_cache_key,
    make_links_key,
    split_links_key,
)
from tests.payloads import embedded_json, link_json, paragraph_json, rich_text_json


def test_cache_key_lowercases_type() -> None:
    assert make_cache_key("nyancat", "Entry", "en-US") == "nyancat_entry_en-US"


def test_links_key_round_trips_members() -> None:
    keys = ["a_entry_en-US", "b_asset_en-US"]
    key = make_links_key(keys)
    assert key == "linksArrayPrefix,a_entry_en-US,b_asset_en-US"
    assert is_links_key(key)
    assert not is_links_key(keys[0])
    assert split_links_key(key) == keys


class TestLink:
    def test_from_json_reads_link_objects(self) -> None:
        link = Link.from_json(link_json("happycat"))
        assert link == Link("happycat", "Entry")
        assert not link.is_resolved

    @pytest.mark.parametrize(
        "value",
        [None, "text", {"sys": {"type": "Entry", "id": "x"}}, {"sys": {"type": "Link", "id": "x"}}],
        ids=["none", "string", "not-a-link", "no-link-type"],
    )
    def test_from_json_ignores_other_values(self, value: object) -> None:
        assert Link.from_json(value) is None

    def test_resolved_returns_new_link(self) -> None:
        link = Link("happycat", "Entry")
        target = object()
        resolved = link.resolved(target)
        assert resolved.entry is target
        assert resolved.asset is None
        assert link.target is None
        assert resolved == link

    def test_resolving_twice_is_rejected(self) -> None:
        resolved = Link("happycat", "Entry").resolved(object())
        with pytest.raises(ValueError):
            resolved.resolved(object())

    def test_unresolved_drops_target(self) -> None:
        resolved = Link("logo", "Asset").resolved(object())
        assert not resolved.unresolved().is_resolved

    def test_to_json(self) -> None:
        assert Link("logo", "Asset").to_json() == link_json("logo", "Asset")


def test_convert_links_handles_single_and_lists() -> None:
    assert convert_links(link_json("a")) == Link("a", "Entry")
    converted = convert_links([link_json("a"), link_json("b", "Asset")])
    assert is_link_list(converted)
    assert [link.id for link in converted] == ["a", "b"]


def test_convert_links_leaves_mixed_lists_alone() -> None:
    value = [link_json("a"), "plain"]
    assert convert_links(value) is value
    assert convert_links([]) == []


def test_convert_links_copies_rich_text_targets() -> None:
    document = rich_text_json(
        paragraph_json({"nodeType": "text", "value": "hi", "marks": [], "data": {}}),
        paragraph_json(embedded_json("entry-hyperlink", link_json("a"))),
        embedded_json("embedded-asset-block", link_json("b", "Asset")),
    )

    converted = convert_links(document)

    assert [link for _, link in iter_rich_text_targets(converted)] == [Link("a", "Entry"), Link("b", "Asset")]
    assert converted["content"][0] == document["content"][0]
    assert document["content"][2]["data"]["target"] == link_json("b", "Asset")
    assert list(iter_rich_text_targets(document)) == []
