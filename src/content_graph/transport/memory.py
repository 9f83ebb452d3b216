from collections import defaultdict, deque
from typing import Any


class InMemoryTransport:
    """Serves canned JSON responses, first in first out per path, and records every request."""

    def __init__(self) -> None:
        self._responses: dict[str, deque[Any]] = defaultdict(deque)
        self.requests: list[tuple[str, dict[str, str]]] = []
        self.closed = False

    def add_response(self, path: str, body: Any) -> None:
        """Queue ``body``; an exception instance is raised instead of returned."""
        self._responses[path].append(body)

    async def get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        self.requests.append((path, dict(params or {})))
        queue = self._responses.get(path)
        if not queue:
            raise LookupError(f"No canned response left for {path!r}")
        body = queue.popleft()
        if isinstance(body, Exception):
            raise body
        return body

    async def aclose(self) -> None:
        self.closed = True
