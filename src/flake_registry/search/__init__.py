"""Search application layer.

Provides the search index accessor and the service implementing the two
read scenarios used by the API:
- List or search flake releases
- List the releases of one owner/repo
"""

from .client import get_search_client
from .index import FlakeIndex, FlakeIndexConfig
from .service import FlakeListing, FlakeService, rank_by_score

__all__ = [
    "FlakeIndex",
    "FlakeIndexConfig",
    "FlakeListing",
    "FlakeService",
    "get_search_client",
    "rank_by_score",
]
