from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from typing import Any

CACHE_KEY_DELIMITER = "_"
LINKS_ARRAY_PREFIX = "linksArrayPrefix"
RICH_TEXT_DOCUMENT = "document"


def make_cache_key(resource_id: str, resource_type: str, locale_code: str) -> str:
    """Composite identity used by the data cache: ``<id>_<lowercased type>_<locale>``."""
    return CACHE_KEY_DELIMITER.join((resource_id, resource_type.lower(), locale_code))


def make_links_key(keys: Iterable[str]) -> str:
    """Key for an ordered group of links; the prefix keeps it apart from single-link keys."""
    return LINKS_ARRAY_PREFIX + "".join("," + key for key in keys)


def split_links_key(key: str) -> list[str]:
    return [part for part in key[len(LINKS_ARRAY_PREFIX) :].split(",") if part]


def is_links_key(key: str) -> bool:
    return key.startswith(LINKS_ARRAY_PREFIX)


@dataclass(frozen=True)
class Link:
    """A typed reference to an asset or entry.

    A link starts unresolved, carrying only ``id`` and ``link_type``. Resolution
    never mutates a link: ``resolved`` returns a new link holding the target.
    """

    id: str
    link_type: str
    target: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def from_json(cls, value: Any) -> Link | None:
        """Return a link for a ``{"sys": {"type": "Link", ...}}`` value, otherwise ``None``."""
        if not isinstance(value, dict):
            return None
        sys = value.get("sys")
        if not isinstance(sys, dict) or sys.get("type") != "Link":
            return None
        link_id = sys.get("id")
        link_type = sys.get("linkType")
        if not isinstance(link_id, str) or not isinstance(link_type, str):
            return None
        return cls(id=link_id, link_type=link_type)

    @property
    def is_resolved(self) -> bool:
        return self.target is not None

    @property
    def entry(self) -> Any:
        return self.target if self.link_type == "Entry" else None

    @property
    def asset(self) -> Any:
        return self.target if self.link_type == "Asset" else None

    def cache_key(self, locale_code: str) -> str:
        return make_cache_key(self.id, self.link_type, locale_code)

    def resolved(self, target: Any) -> Link:
        if self.is_resolved:
            raise ValueError(f"Link {self.id!r} is already resolved")
        if target is None:
            raise ValueError("Cannot resolve a link to nothing")
        return replace(self, target=target)

    def unresolved(self) -> Link:
        return replace(self, target=None) if self.is_resolved else self

    def to_json(self) -> dict[str, Any]:
        return {"sys": {"type": "Link", "linkType": self.link_type, "id": self.id}}


def is_link_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(isinstance(v, Link) for v in value)


def convert_links(value: Any) -> Any:
    """Turn a raw link object, or a non-empty list of them, into ``Link`` values.

    Rich-text documents are copied with their embedded targets converted.
    """
    link = Link.from_json(value)
    if link is not None:
        return link
    if is_rich_text(value):
        return convert_rich_text(value)
    if isinstance(value, list) and value:
        links = [Link.from_json(item) for item in value]
        if all(item is not None for item in links):
            return links
    return value


def is_rich_text(value: Any) -> bool:
    return isinstance(value, dict) and value.get("nodeType") == RICH_TEXT_DOCUMENT


def convert_rich_text(node: Any) -> Any:
    """Copy a rich-text node tree, turning every ``data.target`` link object into a ``Link``.

    Embedded entry and asset blocks, inline entries and entry or asset
    hyperlinks all carry their target this way. Targets that already are
    ``Link`` values are kept, so the function also copies converted trees.
    """
    if not isinstance(node, dict):
        return node
    converted = dict(node)
    data = node.get("data")
    if isinstance(data, dict) and "target" in data:
        link = Link.from_json(data["target"])
        if link is not None:
            converted["data"] = {**data, "target": link}
        else:
            converted["data"] = dict(data)
    content = node.get("content")
    if isinstance(content, list):
        converted["content"] = [convert_rich_text(child) for child in content]
    return converted


def iter_rich_text_targets(node: Any) -> Iterator[tuple[dict[str, Any], Link]]:
    """Yield ``(data, link)`` for every node in the tree whose ``data.target`` is a ``Link``."""
    if not isinstance(node, dict):
        return
    data = node.get("data")
    if isinstance(data, dict) and isinstance(data.get("target"), Link):
        yield data, data["target"]
    for child in node.get("content") or ():
        yield from iter_rich_text_targets(child)
