from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from flake_registry.store import FlakeRelease, FlakeReleaseDetail, ReleaseStore

from .index import FlakeIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlakeListing:
    releases: List[FlakeRelease]
    count: int
    query: Optional[str] = None


def rank_by_score(
    releases: Sequence[FlakeRelease], scores: Mapping[int, float]
) -> List[FlakeRelease]:
    """Return a new list of releases ordered by descending search score.

    Neither input is modified. Releases with equal scores keep no particular
    order relative to each other.
    """
    return sorted(releases, key=lambda r: scores.get(r.id, float("-inf")), reverse=True)


def sort_by_version(releases: Sequence[FlakeReleaseDetail]) -> List[FlakeReleaseDetail]:
    # Plain string comparison, not semver: "2.0.0" sorts above "10.0.0".
    return sorted(releases, key=lambda r: r.version, reverse=True)


class FlakeService:
    """Application-layer flake queries.

    Implements:
      1) Listing recent releases, or searching them by free text
      2) Listing every release of one owner/repo

    Search goes to the index first; the hit ids are then hydrated from the
    relational store, which is authoritative: ids missing there are dropped.
    """

    def __init__(self, store: ReleaseStore, index: FlakeIndex):
        self.store = store
        self.index = index

    def list_flakes(self, query: Optional[str] = None) -> FlakeListing:
        if query is None:
            releases = self.store.list_recent()
        else:
            hits = self.index.search(query)
            logger.debug("Search %r returned %d hits", query, len(hits))
            releases = rank_by_score(self.store.list_by_ids(hits.keys()), hits)

        return FlakeListing(releases=releases, count=len(releases), query=query)

    def read_repo(self, owner: str, repo: str) -> Optional[List[FlakeReleaseDetail]]:
        """Releases of owner/repo, newest version string first; None if the repo is unknown."""
        repo_id = self.store.resolve_repo_id(owner, repo)
        if repo_id is None:
            return None
        return sort_by_version(self.store.list_by_repo_id(repo_id))
