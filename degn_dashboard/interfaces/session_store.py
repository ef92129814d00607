"""Session store protocol — where the bearer token lives."""
from typing import Protocol


class SessionStore(Protocol):
    """Read/write contract of the session storage owned by the auth layer."""

    def get_token(self) -> str | None: ...

    def set_token(self, token: str) -> None: ...

    def clear(self) -> None: ...
