"""Transport protocol — authenticated JSON calls against the backend."""
from typing import Any, Mapping, Protocol


class ApiTransport(Protocol):
    """Abstract interface for issuing one backend request."""

    async def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any: ...
