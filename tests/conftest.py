from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from psycopg2.pool import PoolError

from flake_registry.api.app import app
from flake_registry.api.dependencies import get_flake_service
from flake_registry.search import FlakeService
from flake_registry.store import FlakeRelease, FlakeReleaseDetail


class FakeReleaseStore:
    """In-memory stand-in for ReleaseStore that records hydration calls."""

    def __init__(self) -> None:
        self.releases: List[FlakeReleaseDetail] = []
        self.repo_ids: Dict[Tuple[str, str], int] = {}
        self.hydrated: List[List[int]] = []
        self.fail_with: Optional[Exception] = None

    def add(
        self,
        id: int,
        owner: str,
        repo: str,
        version: str,
        *,
        description: str = "",
        created_at: Optional[datetime] = None,
        commit: str = "0" * 40,
        readme: str = "",
    ) -> FlakeReleaseDetail:
        self.repo_ids.setdefault((owner, repo), len(self.repo_ids) + 1)
        release = FlakeReleaseDetail(
            id=id,
            owner=owner,
            repo=repo,
            version=version,
            description=description,
            created_at=created_at or datetime(2024, 1, 1, 12, 0, 0),
            commit=commit,
            readme=readme,
        )
        self.releases.append(release)
        return release

    def _compact(self, release: FlakeReleaseDetail) -> FlakeRelease:
        return FlakeRelease(
            id=release.id,
            owner=release.owner,
            repo=release.repo,
            version=release.version,
            description=release.description,
            created_at=release.created_at,
        )

    def list_recent(self) -> List[FlakeRelease]:
        if self.fail_with:
            raise self.fail_with
        newest = sorted(self.releases, key=lambda r: r.created_at, reverse=True)
        return [self._compact(r) for r in newest[:100]]

    def list_by_ids(self, ids: Iterable[int]) -> List[FlakeRelease]:
        ids = list(ids)
        if not ids:
            return []
        self.hydrated.append(ids)
        if self.fail_with:
            raise self.fail_with
        wanted = set(ids)
        return [self._compact(r) for r in self.releases if r.id in wanted]

    def resolve_repo_id(self, owner: str, repo: str) -> Optional[int]:
        if self.fail_with:
            raise self.fail_with
        return self.repo_ids.get((owner, repo))

    def list_by_repo_id(self, repo_id: int) -> List[FlakeReleaseDetail]:
        if self.fail_with:
            raise self.fail_with
        return [r for r in self.releases if self.repo_ids[(r.owner, r.repo)] == repo_id]


class FakeFlakeIndex:
    """Returns canned hits and remembers every query it served."""

    def __init__(self) -> None:
        self.hits: Dict[int, float] = {}
        self.queries: List[str] = []
        self.fail_with: Optional[Exception] = None

    def search(self, query: str) -> Dict[int, float]:
        self.queries.append(query)
        if self.fail_with:
            raise self.fail_with
        return dict(self.hits)


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self.conn = conn

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None

    def execute(self, sql: str, params: Any = None) -> None:
        self.conn.executed.append((" ".join(sql.split()), params))
        if self.conn.fail_with:
            raise self.conn.fail_with

    def fetchall(self) -> List[dict]:
        return list(self.conn.rows)

    def fetchone(self) -> Optional[dict]:
        return self.conn.rows[0] if self.conn.rows else None


class FakeConnection:
    def __init__(self) -> None:
        self.rows: List[dict] = []
        self.executed: List[tuple] = []
        self.fail_with: Optional[Exception] = None

    def cursor(self, cursor_factory: Any = None) -> FakeCursor:
        return FakeCursor(self)


class FakePool:
    def __init__(self) -> None:
        self.conn = FakeConnection()
        self.borrowed = 0
        self.returned = 0
        self.exhausted = False
        self.closed = False

    def getconn(self) -> FakeConnection:
        if self.exhausted:
            raise PoolError("connection pool exhausted")
        self.borrowed += 1
        return self.conn

    def putconn(self, conn: FakeConnection) -> None:
        self.returned += 1

    def closeall(self) -> None:
        self.closed = True


@pytest.fixture
def store() -> FakeReleaseStore:
    return FakeReleaseStore()


@pytest.fixture
def index() -> FakeFlakeIndex:
    return FakeFlakeIndex()


@pytest.fixture
def service(store: FakeReleaseStore, index: FakeFlakeIndex) -> FlakeService:
    return FlakeService(store=store, index=index)  # type: ignore[arg-type]


@pytest.fixture
def client(service: FlakeService):
    app.dependency_overrides[get_flake_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def pool() -> FakePool:
    return FakePool()
