"""Relational store access for flake releases."""

from .postgres_client import get_connection_pool
from .release_store import RECENT_LIMIT, ReleaseStore
from .schemas import FlakeRelease, FlakeReleaseDetail

__all__ = [
    "FlakeRelease",
    "FlakeReleaseDetail",
    "RECENT_LIMIT",
    "ReleaseStore",
    "get_connection_pool",
]
