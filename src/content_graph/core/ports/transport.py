from typing import Any, Protocol


class Transport(Protocol):
    async def get_json(self, path: str, params: dict[str, str] | None = None) -> Any: ...

    async def aclose(self) -> None: ...
