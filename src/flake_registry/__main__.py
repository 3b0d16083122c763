import uvicorn

from flake_registry.config import get_settings


def main() -> None:
    """Run the API server on HOST:PORT."""
    settings = get_settings()
    uvicorn.run(
        "flake_registry.api.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
