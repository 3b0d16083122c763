from fastapi import Request

from flake_registry.search import FlakeIndex, FlakeService
from flake_registry.store import ReleaseStore


def get_flake_service(request: Request) -> FlakeService:
    """Build the per-request service around the clients created at startup."""
    state = request.app.state
    return FlakeService(
        store=ReleaseStore(state.pool),
        index=FlakeIndex(state.search_client, state.index_config),
    )
