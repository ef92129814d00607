"""Protocol interfaces for the dashboard client."""
from .session_store import SessionStore
from .transport import ApiTransport

__all__ = ["ApiTransport", "SessionStore"]
