import json
from dataclasses import dataclass
from typing import Any

from content_graph.core.link import Link
from content_graph.core.resources import Entry, LocalizableResource


@dataclass(frozen=True)
class RelationshipRow:
    parent_id: str
    field: str
    locale: str
    position: int
    child_id: str
    child_type: str


def _plain(value: Any) -> Any:
    if isinstance(value, Link):
        return value.to_json()
    if isinstance(value, list):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


def fields_to_json(record: LocalizableResource) -> str:
    """Serialize the raw ``field -> locale -> value`` store, links as link objects."""
    store = {
        name: {code: _plain(value) for code, value in values.items()}
        for name, values in record.localizable_fields.items()
    }
    return json.dumps(store, sort_keys=True, default=str)


def relationship_rows(entry: Entry) -> list[RelationshipRow]:
    """One row per link member of every link field of ``entry``, embedded rich-text links included."""
    rows = []
    for name, code, value in [*entry.iter_links(), *entry.iter_embedded_links()]:
        links = [value] if isinstance(value, Link) else value
        for position, link in enumerate(links):
            rows.append(RelationshipRow(entry.id, name, code, position, link.id, link.link_type))
    return rows


def timestamp(record: LocalizableResource) -> str | None:
    return record.updated_at.isoformat() if record.updated_at is not None else None
