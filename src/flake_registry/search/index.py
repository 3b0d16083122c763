from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Union

import httpx
from pydantic import BaseModel, Field, StrictFloat, StrictInt, ValidationError, field_validator

from flake_registry.errors import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlakeIndexConfig:
    index_name: str = "flakes"
    size: int = 10
    fields: Tuple[str, ...] = ("description^2", "readme", "outputs", "repo^2", "owner^2")


_DOC_ID = re.compile(r"[+-]?[0-9]+")


class SearchHit(BaseModel):
    id: int = Field(..., alias="_id")
    score: Union[StrictFloat, StrictInt] = Field(..., alias="_score")

    @field_validator("id", mode="before")
    @classmethod
    def parse_doc_id(cls, value: Any) -> int:
        # Document ids are release ids written as strings
        if not isinstance(value, str) or not _DOC_ID.fullmatch(value):
            raise ValueError(f"_id must be a numeric string, got {value!r}")
        return int(value)


class SearchHits(BaseModel):
    hits: List[SearchHit]


class SearchResponse(BaseModel):
    """The part of an OpenSearch `_search` response we rely on.

    Every field is required: a response without `hits.hits`, or a hit with a
    `_id` that is not a numeric string, or a score that is missing or not a
    JSON number, fails validation.
    """

    hits: SearchHits


class FlakeIndex:
    """Full-text search over the flake document index."""

    def __init__(self, client: httpx.Client, config: FlakeIndexConfig | None = None):
        self.client = client
        self.config = config or FlakeIndexConfig()

    def ensure_index(self) -> bool:
        """Create the index if it does not exist yet. Returns True if it was created."""
        name = self.config.index_name
        try:
            response = self.client.get(f"/{name}")
            if response.status_code != 404:
                response.raise_for_status()
                return False

            created = self.client.put(f"/{name}")
            # Another instance may have created it in between
            if created.status_code == 400 and "resource_already_exists" in created.text:
                return False
            created.raise_for_status()
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Failed to ensure opensearch index '{name}': {e}") from e

        logger.info("Created opensearch index '%s'", name)
        return True

    def search(self, query: str) -> Dict[int, float]:
        """Return up to `config.size` hits as {release id: relevance score}."""
        try:
            response = self.client.post(
                f"/{self.config.index_name}/_search",
                json=self._build_query(query),
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Opensearch request failed: %s", e)
            raise ExternalServiceError(f"Failed to send opensearch request: {e}") from e

        try:
            parsed = SearchResponse.model_validate_json(response.content)
        except ValidationError as e:
            logger.error("Unexpected opensearch response: %s", e)
            raise ExternalServiceError(f"Failed to decode opensearch response: {e}") from e

        return {hit.id: float(hit.score) for hit in parsed.hits.hits}

    def _build_query(self, query: str) -> Dict[str, Any]:
        return {
            "size": self.config.size,
            "query": {
                "multi_match": {
                    "query": query,
                    "fuzziness": "AUTO",
                    "fields": list(self.config.fields),
                }
            },
        }
