"""Retry policy and wrapper."""
from .backoff import BackoffPolicy, is_transient
from .request import ResilientRequest

__all__ = ["BackoffPolicy", "ResilientRequest", "is_transient"]
