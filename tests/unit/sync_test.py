from unittest.mock import patch

import pytest

from content_graph.core.decoding import DecodeContext
from content_graph.core.link import Link
from content_graph.core.sync import SyncableTypes, SyncPage, SyncSpace, SyncState, extract_sync_token
from content_graph.errors import UnparseableResponseError
from tests.payloads import asset_json, deleted_json, entry_json, link_json, sync_json


def _page(ctx: DecodeContext, items: list, token: str, more: bool = False) -> SyncPage:
    return SyncPage.from_json(sync_json(items, token, more), ctx)


def _nested(**values: object) -> dict:
    return {name: {"en-US": value} for name, value in values.items()}


class TestSyncableTypes:
    @pytest.mark.parametrize(
        ("types", "expected"),
        [
            (SyncableTypes.all(), {}),
            (SyncableTypes.entries(), {"type": "Entry"}),
            (SyncableTypes.assets(), {"type": "Asset"}),
            (SyncableTypes.all_deletions(), {"type": "Deletion"}),
            (SyncableTypes.deleted_entries(), {"type": "DeletedEntry"}),
            (SyncableTypes.deleted_assets(), {"type": "DeletedAsset"}),
            (SyncableTypes.entries_of_content_type("cat"), {"type": "Entry", "content_type": "cat"}),
        ],
        ids=["all", "entries", "assets", "deletions", "deleted-entries", "deleted-assets", "content-type"],
    )
    def test_parameters(self, types: SyncableTypes, expected: dict) -> None:
        assert types.parameters == expected

    def test_content_type_must_not_be_empty(self) -> None:
        with pytest.raises(ValueError):
            SyncableTypes.entries_of_content_type("")


class TestSyncPage:
    def test_sorts_items_by_type(self, sync_ctx: DecodeContext) -> None:
        items = [
            entry_json("nyancat", _nested(name="Nyan")),
            asset_json("logo", _nested(title="Logo")),
            deleted_json("old-entry"),
            deleted_json("old-asset", "DeletedAsset"),
            {"sys": {"id": "cat", "type": "ContentType"}, "name": "Cat"},
        ]
        page = _page(sync_ctx, items, "DONE")

        assert [entry.id for entry in page.entries] == ["nyancat"]
        assert [asset.id for asset in page.assets] == ["logo"]
        assert page.deleted_entry_ids == ["old-entry"]
        assert page.deleted_asset_ids == ["old-asset"]
        assert page.sync_token == "DONE"
        assert not page.has_more_pages

    def test_next_page_url_means_more_pages(self, sync_ctx: DecodeContext) -> None:
        page = _page(sync_ctx, [], "PAGE2", more=True)
        assert page.has_more_pages
        assert page.sync_token == "PAGE2"

    def test_missing_cursor_is_a_shape_error(self, sync_ctx: DecodeContext) -> None:
        with pytest.raises(UnparseableResponseError):
            SyncPage.from_json({"items": []}, sync_ctx)

    def test_unknown_item_type_is_a_shape_error(self, sync_ctx: DecodeContext) -> None:
        with pytest.raises(UnparseableResponseError):
            _page(sync_ctx, [{"sys": {"id": "x", "type": "Banana"}}], "DONE")

    def test_flat_fields_are_a_shape_error(self, sync_ctx: DecodeContext) -> None:
        with pytest.raises(UnparseableResponseError):
            _page(sync_ctx, [entry_json("nyancat", {"name": "Nyan"})], "DONE")

    def test_entries_are_not_resolved_per_page(self, sync_ctx: DecodeContext) -> None:
        page = _page(sync_ctx, [entry_json("nyancat", _nested(bestFriend=link_json("happycat")))], "DONE")
        assert sync_ctx.resolver.pending == 0
        assert not page.entries[0]["bestFriend"].is_resolved


def test_extract_sync_token() -> None:
    assert extract_sync_token("https://cdn.example.net/sync?sync_token=abc%3D&x=1") == "abc="
    with pytest.raises(UnparseableResponseError):
        extract_sync_token("https://cdn.example.net/sync")


class TestSyncSpace:
    def test_state_transitions(self, sync_ctx: DecodeContext) -> None:
        space = SyncSpace()
        assert space.state is SyncState.FRESH

        space.merge(_page(sync_ctx, [], "PAGE2", more=True))
        assert space.state is SyncState.PAGING

        space.merge(_page(sync_ctx, [], "DONE"))
        assert space.state is SyncState.SETTLED

    def test_parameters_per_state(self, sync_ctx: DecodeContext) -> None:
        types = SyncableTypes.entries_of_content_type("cat")
        space = SyncSpace()
        assert space.parameters(types) == {"initial": "true", "type": "Entry", "content_type": "cat"}

        space.merge(_page(sync_ctx, [], "PAGE2", more=True))
        assert space.parameters(types) == {"sync_token": "PAGE2"}

        space.merge(_page(sync_ctx, [], "DONE"))
        assert space.parameters(types) == {"sync_token": "DONE", "type": "Entry", "content_type": "cat"}
        assert space.parameters() == {"sync_token": "DONE"}

    def test_merge_upserts_then_deletes(self, sync_ctx: DecodeContext) -> None:
        space = SyncSpace()
        space.merge(
            _page(sync_ctx, [entry_json("a", _nested(v=1)), entry_json("b", _nested(v=1)), asset_json("x")], "T1")
        )
        space.merge(
            _page(
                sync_ctx,
                [
                    entry_json("b", _nested(v=2)),
                    entry_json("c", _nested(v=1)),
                    deleted_json("a"),
                    deleted_json("x", "DeletedAsset"),
                ],
                "T2",
            )
        )

        assert set(space.entries_by_id) == {"b", "c"}
        assert space.entries_by_id["b"]["v"] == 2
        assert space.assets_by_id == {}
        assert space.deleted_entry_ids == {"a"}
        assert space.deleted_asset_ids == {"x"}
        assert space.sync_token == "T2"

    def test_recreated_id_leaves_deleted_set(self, sync_ctx: DecodeContext) -> None:
        space = SyncSpace()
        space.merge(_page(sync_ctx, [deleted_json("a")], "T1"))
        space.merge(_page(sync_ctx, [entry_json("a", _nested(v=1))], "T2"))

        assert "a" in space.entries_by_id
        assert space.deleted_entry_ids == set()

    def test_update_and_delete_in_one_page_ends_deleted(self, sync_ctx: DecodeContext) -> None:
        space = SyncSpace()
        space.merge(_page(sync_ctx, [entry_json("a", _nested(v=1)), deleted_json("a")], "T1"))

        assert "a" not in space.entries_by_id
        assert space.deleted_entry_ids == {"a"}

    def test_links_resolve_across_pages_after_last_page(self, sync_ctx: DecodeContext) -> None:
        space = SyncSpace()
        page1 = _page(sync_ctx, [entry_json("nyancat", _nested(bestFriend=link_json("happycat")))], "PAGE2", more=True)
        assert space.merge(page1) == []
        assert not space.entries_by_id["nyancat"]["bestFriend"].is_resolved

        page2 = _page(sync_ctx, [entry_json("happycat", _nested(name="Happy Cat"))], "DONE")
        misses = space.merge(page2)

        assert misses == []
        assert space.entries_by_id["nyancat"].linked_entry("bestFriend") is space.entries_by_id["happycat"]

    def test_asset_on_later_page_resolves(self, sync_ctx: DecodeContext) -> None:
        space = SyncSpace()
        page1 = _page(sync_ctx, [entry_json("nyancat", _nested(image=link_json("logo", "Asset")))], "P2", more=True)
        space.merge(page1)
        space.merge(_page(sync_ctx, [asset_json("logo", _nested(title="Nyan Logo"))], "DONE"))

        assert space.entries_by_id["nyancat"].linked_asset("image").title == "Nyan Logo"

    def test_resolution_runs_once_per_chain(self, sync_ctx: DecodeContext) -> None:
        space = SyncSpace()
        with patch.object(SyncSpace, "resolve_links", autospec=True, return_value=[]) as resolve:
            space.merge(_page(sync_ctx, [], "PAGE2", more=True))
            assert resolve.call_count == 0
            space.merge(_page(sync_ctx, [], "DONE"))
        assert resolve.call_count == 1
        assert space.sync_token == "DONE"

    def test_relinks_to_latest_target_and_unresolves_deleted(self, sync_ctx: DecodeContext) -> None:
        space = SyncSpace()
        space.merge(
            _page(
                sync_ctx,
                [
                    entry_json("nyancat", _nested(bestFriend=link_json("happycat"))),
                    entry_json("happycat", _nested(name="Happy Cat")),
                ],
                "T1",
            )
        )
        space.merge(_page(sync_ctx, [entry_json("happycat", _nested(name="Happier Cat"))], "T2"))
        nyancat = space.entries_by_id["nyancat"]
        assert nyancat.linked_entry("bestFriend").fields["name"] == "Happier Cat"

        misses = space.merge(_page(sync_ctx, [deleted_json("happycat")], "T3"))
        assert misses == [Link("happycat", "Entry")]
        assert nyancat.linked_entry("bestFriend") is None
        assert not nyancat["bestFriend"].is_resolved
