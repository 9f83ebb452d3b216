"""Content models registered by the decoding, client and registry tests."""

from typing import Any, ClassVar

from content_graph.core.registry import EntryModel, FieldsReader
from content_graph.models import Sys


class Cat(EntryModel):
    content_type_id: ClassVar[str] = "cat"

    name: str
    lives: int | None = None
    best_friend: Any = None
    toys: list[Any] = []
    bio: Any = None

    @classmethod
    def from_fields(cls, sys: Sys, fields: FieldsReader) -> "Cat":
        cat = cls(sys=sys, name=fields["name"], lives=fields.get("lives"), bio=fields.rich_text("bio"))
        fields.resolve_link("bestFriend", lambda target: setattr(cat, "best_friend", target))
        fields.resolve_links("toys", lambda targets: setattr(cat, "toys", targets))
        return cat


class Dog(EntryModel):
    content_type_id: ClassVar[str] = "dog"

    name: str
    barks: bool = False
