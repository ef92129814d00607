"""In-process session store."""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class MemorySessionStore:
    """Holds the bearer token for the lifetime of the process."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token or None

    def get_token(self) -> str | None:
        return self._token

    def set_token(self, token: str) -> None:
        if not token:
            raise ValueError("Refusing to store an empty token")
        self._token = token
        logger.debug("Session token stored")

    def clear(self) -> None:
        self._token = None
        logger.info("Session cleared")
