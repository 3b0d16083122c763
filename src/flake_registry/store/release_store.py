"""Read access to flake releases in PostgreSQL."""

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from flake_registry.errors import StorageError

from .schemas import FlakeRelease, FlakeReleaseDetail

logger = logging.getLogger(__name__)

RECENT_LIMIT = 100

_RELEASE_COLUMNS = """
    release.id AS id,
    githubowner.name AS owner,
    githubrepo.name AS repo,
    release.version AS version,
    release.description AS description,
    release.created_at AS created_at
"""

_RELEASE_JOINS = """
    FROM release
    INNER JOIN githubrepo ON githubrepo.id = release.repo_id
    INNER JOIN githubowner ON githubowner.id = githubrepo.owner_id
"""


class ReleaseStore:
    """Queries releases joined with their owner/repo identity."""

    def __init__(self, pool: ThreadedConnectionPool):
        self.pool = pool

    @contextmanager
    def _cursor(self, action: str) -> Iterator[RealDictCursor]:
        """Borrow a pooled connection and yield a dict cursor.

        Any psycopg2 failure, including pool exhaustion, is raised as
        StorageError. The connection always goes back to the pool; the pool
        rolls back the open read transaction and discards broken connections.
        """
        try:
            conn = self.pool.getconn()
        except psycopg2.Error as e:
            logger.error("Error acquiring database connection to %s: %s", action, e)
            raise StorageError(f"Failed to {action}: {e}") from e
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                yield cur
        except psycopg2.Error as e:
            logger.error("Error trying to %s: %s", action, e)
            raise StorageError(f"Failed to {action}: {e}") from e
        finally:
            self.pool.putconn(conn)

    def list_recent(self) -> List[FlakeRelease]:
        """Newest releases first, at most RECENT_LIMIT of them."""
        with self._cursor("fetch flakes from database") as cur:
            cur.execute(
                f"SELECT {_RELEASE_COLUMNS} {_RELEASE_JOINS} "
                "ORDER BY release.created_at DESC LIMIT %s",
                (RECENT_LIMIT,),
            )
            rows = cur.fetchall()
        return [FlakeRelease.from_row(row) for row in rows]

    def list_by_ids(self, ids: Iterable[int]) -> List[FlakeRelease]:
        """Hydrate releases by primary key. Result order is unspecified.

        Unknown ids are skipped. An empty id set returns without touching the
        database.
        """
        id_list = sorted({int(i) for i in ids})
        if not id_list:
            return []

        with self._cursor("fetch flakes by id from database") as cur:
            cur.execute(
                f"SELECT {_RELEASE_COLUMNS} {_RELEASE_JOINS} "
                "WHERE release.id = ANY(%s)",
                (id_list,),
            )
            rows = cur.fetchall()
        return [FlakeRelease.from_row(row) for row in rows]

    def resolve_repo_id(self, owner: str, repo: str) -> Optional[int]:
        """Look up the repository id for an exact owner/repo pair, or None."""
        with self._cursor("fetch repo id from database") as cur:
            cur.execute(
                "SELECT githubrepo.id AS id "
                "FROM githubrepo "
                "INNER JOIN githubowner ON githubowner.id = githubrepo.owner_id "
                "WHERE githubrepo.name = %s AND githubowner.name = %s LIMIT 1",
                (repo, owner),
            )
            row = cur.fetchone()
        return row["id"] if row else None

    def list_by_repo_id(self, repo_id: int) -> List[FlakeReleaseDetail]:
        with self._cursor("fetch repo releases from database") as cur:
            cur.execute(
                f"SELECT {_RELEASE_COLUMNS}, "
                "release.commit AS commit, release.readme AS readme "
                f"{_RELEASE_JOINS} WHERE release.repo_id = %s",
                (repo_id,),
            )
            rows = cur.fetchall()
        return [FlakeReleaseDetail.from_row(row) for row in rows]

    def initialize_schema(self) -> None:
        """Create the owner, repo and release tables if they don't exist."""
        conn = self.pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS githubowner (
                        id SERIAL PRIMARY KEY,
                        name TEXT NOT NULL UNIQUE
                    );

                    CREATE TABLE IF NOT EXISTS githubrepo (
                        id SERIAL PRIMARY KEY,
                        owner_id INTEGER NOT NULL REFERENCES githubowner(id),
                        name TEXT NOT NULL,
                        CONSTRAINT unique_owner_repo UNIQUE (owner_id, name)
                    );

                    CREATE TABLE IF NOT EXISTS release (
                        id SERIAL PRIMARY KEY,
                        repo_id INTEGER NOT NULL REFERENCES githubrepo(id),
                        version TEXT NOT NULL,
                        description TEXT,
                        readme TEXT,
                        commit TEXT NOT NULL,
                        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                    );

                    CREATE INDEX IF NOT EXISTS idx_release_repo_id ON release(repo_id);
                    CREATE INDEX IF NOT EXISTS idx_release_created_at ON release(created_at);
                """)
                conn.commit()
                logger.info("Database schema initialized")
        except psycopg2.Error as e:
            conn.rollback()
            logger.error("Error initializing schema: %s", e)
            raise StorageError(f"Failed to initialize schema: {e}") from e
        finally:
            self.pool.putconn(conn)
