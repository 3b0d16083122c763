from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from flake_registry.api.dependencies import get_flake_service
from flake_registry.errors import FlakeRegistryError
from flake_registry.search import FlakeService
from flake_registry.store import FlakeRelease, FlakeReleaseDetail


router = APIRouter(prefix="/api/flake", tags=["flake"])


class FlakeReleaseItem(BaseModel):
    owner: str = Field(..., description="Account that owns the repository.")
    repo: str = Field(..., description="Repository name.")
    version: str = Field(..., description="Release version string.")
    description: str = Field("", description="Free-text description, empty if unset.")
    created_at: datetime = Field(..., description="When the release was published.")

    @classmethod
    def from_release(cls, release: FlakeRelease) -> "FlakeReleaseItem":
        return cls(
            owner=release.owner,
            repo=release.repo,
            version=release.version,
            description=release.description,
            created_at=release.created_at,
        )


class FlakeReleaseDetailItem(FlakeReleaseItem):
    commit: str = Field(..., description="Source-control commit the release was built from.")
    readme: str = Field("", description="Readme contents at that commit.")

    @classmethod
    def from_detail(cls, release: FlakeReleaseDetail) -> "FlakeReleaseDetailItem":
        return cls(
            owner=release.owner,
            repo=release.repo,
            version=release.version,
            description=release.description,
            created_at=release.created_at,
            commit=release.commit,
            readme=release.readme,
        )


class FlakeListResponse(BaseModel):
    releases: List[FlakeReleaseItem] = Field(default_factory=list)
    count: int = Field(..., description="Number of releases returned.")
    query: Optional[str] = Field(None, description="The search query, if one was given.")


class RepoResponse(BaseModel):
    releases: List[FlakeReleaseDetailItem] = Field(default_factory=list)


@router.get(
    "",
    summary="List or search flake releases",
    response_model=FlakeListResponse,
)
def list_flakes(
    q: Optional[str] = Query(
        None, description="Free-text query. Omit to list the most recent releases."
    ),
    service: FlakeService = Depends(get_flake_service),
) -> FlakeListResponse:
    """Search releases by text, or list the 100 newest when no query is given."""

    try:
        listing = service.list_flakes(q)
    except FlakeRegistryError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to list flakes: {exc}") from exc

    return FlakeListResponse(
        releases=[FlakeReleaseItem.from_release(r) for r in listing.releases],
        count=listing.count,
        query=listing.query,
    )


@router.get(
    "/{owner}/{repo}",
    summary="List the releases of a repository",
    response_model=RepoResponse,
    responses={404: {"description": "Unknown owner/repo"}},
)
def read_repo(
    owner: str,
    repo: str,
    service: FlakeService = Depends(get_flake_service),
) -> RepoResponse:
    try:
        releases = service.read_repo(owner, repo)
    except FlakeRegistryError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to read repo: {exc}") from exc

    if releases is None:
        raise HTTPException(status_code=404, detail="Not Found")

    return RepoResponse(releases=[FlakeReleaseDetailItem.from_detail(r) for r in releases])
