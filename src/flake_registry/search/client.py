from typing import Optional

import httpx

from flake_registry.config import Settings, get_settings


def get_search_client(settings: Optional[Settings] = None) -> httpx.Client:
    """Create the shared HTTP client for the OpenSearch cluster.

    Env overrides (see flake_registry.config):
      - OPENSEARCH_URL (default http://localhost:9200)
      - OPENSEARCH_USER / OPENSEARCH_PASSWORD (basic auth, unset by default)
      - SEARCH_TIMEOUT_SECONDS (default 10)
    """
    settings = settings or get_settings()
    auth = None
    if settings.opensearch_user:
        auth = httpx.BasicAuth(settings.opensearch_user, settings.opensearch_password or "")
    return httpx.Client(
        base_url=settings.opensearch_url,
        auth=auth,
        timeout=httpx.Timeout(settings.search_timeout),
    )
