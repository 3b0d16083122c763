from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping


@dataclass(frozen=True)
class FlakeRelease:
    """A published release as shown in listings and search results.

    `id` is the internal primary key; it is used to join search hits with
    rows and is never exposed by the API.
    """

    id: int
    owner: str
    repo: str
    version: str
    description: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "FlakeRelease":
        return cls(
            id=row["id"],
            owner=row["owner"],
            repo=row["repo"],
            version=row["version"],
            description=row.get("description") or "",
            created_at=row["created_at"],
        )


@dataclass(frozen=True)
class FlakeReleaseDetail(FlakeRelease):
    """A release with the fields only the per-repository view carries."""

    commit: str
    readme: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "FlakeReleaseDetail":
        return cls(
            id=row["id"],
            owner=row["owner"],
            repo=row["repo"],
            version=row["version"],
            description=row.get("description") or "",
            created_at=row["created_at"],
            commit=row["commit"],
            readme=row.get("readme") or "",
        )
