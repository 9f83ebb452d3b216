import os

from pydantic import BaseModel, ConfigDict, Field

DELIVERY_HOST = "cdn.contentful.com"
PREVIEW_HOST = "preview.contentful.com"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///content_graph.db"


class ClientConfiguration(BaseModel):
    """Connection settings for one space environment."""

    model_config = ConfigDict(frozen=True)

    space_id: str = Field(min_length=1)
    access_token: str = Field(min_length=1)
    environment: str = "master"
    host: str = DELIVERY_HOST
    timeout: float = Field(default=30.0, gt=0)
    database_url: str = DEFAULT_DATABASE_URL

    @property
    def is_preview(self) -> bool:
        return self.host == PREVIEW_HOST

    @property
    def base_url(self) -> str:
        return f"https://{self.host}/spaces/{self.space_id}/"

    @classmethod
    def from_env(cls, **overrides: object) -> "ClientConfiguration":
        values: dict[str, object] = {
            "space_id": os.getenv("CONTENT_GRAPH_SPACE_ID", ""),
            "access_token": os.getenv("CONTENT_GRAPH_ACCESS_TOKEN", ""),
            "environment": os.getenv("CONTENT_GRAPH_ENVIRONMENT", "master"),
            "host": os.getenv("CONTENT_GRAPH_HOST", DELIVERY_HOST),
            "timeout": os.getenv("CONTENT_GRAPH_TIMEOUT", "30"),
            "database_url": os.getenv("CONTENT_GRAPH_DATABASE_URL", DEFAULT_DATABASE_URL),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(values)
