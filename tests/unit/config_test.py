import pytest
from pydantic import ValidationError

from content_graph.config import DEFAULT_DATABASE_URL, DELIVERY_HOST, PREVIEW_HOST, ClientConfiguration


def test_defaults() -> None:
    config = ClientConfiguration(space_id="space", access_token="token")
    assert config.environment == "master"
    assert config.host == DELIVERY_HOST
    assert not config.is_preview
    assert config.base_url == "https://cdn.contentful.com/spaces/space/"
    assert config.database_url == DEFAULT_DATABASE_URL


def test_preview_host_switches_mode() -> None:
    assert ClientConfiguration(space_id="space", access_token="token", host=PREVIEW_HOST).is_preview


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONTENT_GRAPH_SPACE_ID", "cfexampleapi")
    monkeypatch.setenv("CONTENT_GRAPH_ACCESS_TOKEN", "secret")
    monkeypatch.setenv("CONTENT_GRAPH_ENVIRONMENT", "staging")
    monkeypatch.setenv("CONTENT_GRAPH_TIMEOUT", "2.5")
    monkeypatch.delenv("CONTENT_GRAPH_HOST", raising=False)

    config = ClientConfiguration.from_env(environment="qa", database_url=None)

    assert config.space_id == "cfexampleapi"
    assert config.environment == "qa"
    assert config.timeout == 2.5
    assert config.host == DELIVERY_HOST


def test_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CONTENT_GRAPH_SPACE_ID", raising=False)
    monkeypatch.setenv("CONTENT_GRAPH_ACCESS_TOKEN", "secret")
    with pytest.raises(ValidationError):
        ClientConfiguration.from_env()


def test_timeout_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        ClientConfiguration(space_id="space", access_token="token", timeout=0)
