from fastapi import APIRouter


router = APIRouter(prefix="/api", tags=["publish"])


@router.post("/publish", summary="Publish a flake release")
def publish() -> dict:
    """Placeholder until publishing is wired up; always returns the same body."""
    return {"status": "not_implemented"}
