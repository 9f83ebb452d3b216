from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ResourceType(str, Enum):
    ASSET = "Asset"
    ENTRY = "Entry"
    CONTENT_TYPE = "ContentType"
    DELETED_ASSET = "DeletedAsset"
    DELETED_ENTRY = "DeletedEntry"
    LOCALE = "Locale"
    SPACE = "Space"
    LINK = "Link"


class FieldType(str, Enum):
    SYMBOL = "Symbol"
    TEXT = "Text"
    INTEGER = "Integer"
    NUMBER = "Number"
    DATE = "Date"
    BOOLEAN = "Boolean"
    LINK = "Link"
    ARRAY = "Array"
    OBJECT = "Object"
    LOCATION = "Location"
    RICH_TEXT = "RichText"


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Sys(_WireModel):
    """System fields shared by every record: identity, type tag and bookkeeping."""

    id: str
    type: str
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    locale: str | None = None
    revision: int | None = None
    content_type_id: str | None = Field(default=None, alias="contentType")

    @field_validator("content_type_id", mode="before")
    @classmethod
    def _unwrap_content_type_link(cls, value: Any) -> Any:
        # contentType arrives as a link: {"sys": {"type": "Link", "linkType": "ContentType", "id": ...}}
        if isinstance(value, dict):
            sys = value.get("sys")
            return sys.get("id") if isinstance(sys, dict) else None
        return value


class LinkSys(_WireModel):
    id: str
    type: str = "Link"
    link_type: str = Field(alias="linkType")


class Locale(_WireModel):
    code: str
    name: str = ""
    default: bool = False
    fallback_code: str | None = Field(default=None, alias="fallbackCode")


class FieldDefinition(_WireModel):
    id: str
    name: str = ""
    type: FieldType
    link_type: str | None = Field(default=None, alias="linkType")
    items_type: FieldType | None = None
    items_link_type: str | None = None
    localized: bool = False
    required: bool = False
    disabled: bool = False

    @model_validator(mode="before")
    @classmethod
    def _flatten_items(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("items"), dict):
            items = data["items"]
            data = {**data, "items_type": items.get("type"), "items_link_type": items.get("linkType")}
        return data

    @property
    def item_type(self) -> str | None:
        """The link type for links, the element type (or element link type) for arrays."""
        if self.type == FieldType.LINK:
            return self.link_type
        if self.type == FieldType.ARRAY:
            if self.items_type == FieldType.LINK:
                return self.items_link_type
            return self.items_type.value if self.items_type else None
        return None


class ContentType(_WireModel):
    sys: Sys
    name: str
    display_field: str | None = Field(default=None, alias="displayField")
    description: str | None = None
    fields: list[FieldDefinition] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.sys.id

    def field(self, field_id: str) -> FieldDefinition | None:
        return next((f for f in self.fields if f.id == field_id), None)


class Space(_WireModel):
    sys: Sys
    name: str
    locales: list[Locale] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.sys.id


class ImageInfo(_WireModel):
    width: float
    height: float


class FileDetails(_WireModel):
    size: int
    image: ImageInfo | None = None


class FileMetadata(_WireModel):
    """Metadata of the media file attached to an asset."""

    file_name: str = Field(alias="fileName")
    content_type: str = Field(alias="contentType")
    url: str | None = None
    details: FileDetails | None = None

    @field_validator("url", mode="before")
    @classmethod
    def _add_scheme(cls, value: Any) -> Any:
        # The API serves protocol-relative URLs, e.g. //images.example.net/...
        if isinstance(value, str) and value.startswith("//"):
            return "https:" + value
        return value
