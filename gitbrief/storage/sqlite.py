"""
SQLite TrendStore implementation.

A single file-backed database holds snapshots, their language breakdowns,
summaries and the persisted language rollups. sqlite3 calls are blocking,
so every operation runs in a worker thread behind one connection lock.
"""

import asyncio
import logging
import os
import sqlite3
import threading
from collections import OrderedDict
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Sequence, Set, TypeVar

from gitbrief.storage.interfaces import (
    DAILY,
    WEEKLY,
    BaseTrendStore,
    ConnectionError,
    IntegrityError,
    StorageError,
)
from gitbrief.types import LanguageShare, LanguageTrend, RepoSnapshot, Summary, TrendEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")


SCHEMA = """
CREATE TABLE IF NOT EXISTS trending_repos (
    date TEXT NOT NULL,
    repo_id INTEGER NOT NULL,
    repo_name TEXT NOT NULL,
    url TEXT NOT NULL,
    rank INTEGER NOT NULL,
    score REAL,
    primary_language TEXT,
    languages_fetched INTEGER NOT NULL DEFAULT 0,
    description TEXT,
    readme_text TEXT,
    stars INTEGER,
    forks INTEGER,
    pull_requests INTEGER,
    pushes INTEGER,
    contributor_logins TEXT,
    collection_names TEXT,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (date, repo_id)
);

CREATE TABLE IF NOT EXISTS repo_languages (
    date TEXT NOT NULL,
    repo_id INTEGER NOT NULL,
    language TEXT NOT NULL,
    percentage REAL NOT NULL,
    PRIMARY KEY (date, repo_id, language)
);

CREATE TABLE IF NOT EXISTS summaries (
    date TEXT NOT NULL,
    repo_id INTEGER NOT NULL,
    text TEXT NOT NULL,
    produced_at TEXT NOT NULL,
    PRIMARY KEY (date, repo_id)
);

CREATE TABLE IF NOT EXISTS language_trends (
    kind TEXT NOT NULL,
    period TEXT NOT NULL,
    language TEXT NOT NULL,
    normalized_percentage REAL NOT NULL,
    repo_count INTEGER NOT NULL,
    PRIMARY KEY (kind, period, language)
);

CREATE INDEX IF NOT EXISTS idx_trending_date ON trending_repos(date);
CREATE INDEX IF NOT EXISTS idx_languages_date ON repo_languages(date);
"""

UPSERT_SNAPSHOT_SQL = """
INSERT INTO trending_repos (
    date, repo_id, repo_name, url, rank, score, primary_language, languages_fetched,
    description, readme_text, stars, forks, pull_requests, pushes,
    contributor_logins, collection_names, updated_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (date, repo_id) DO UPDATE SET
    repo_name = excluded.repo_name,
    url = excluded.url,
    rank = excluded.rank,
    score = excluded.score,
    primary_language = CASE
        WHEN excluded.languages_fetched = 1 THEN excluded.primary_language
        WHEN trending_repos.languages_fetched = 1 THEN trending_repos.primary_language
        ELSE excluded.primary_language
    END,
    languages_fetched = MAX(trending_repos.languages_fetched, excluded.languages_fetched),
    description = excluded.description,
    readme_text = COALESCE(excluded.readme_text, trending_repos.readme_text),
    stars = excluded.stars,
    forks = excluded.forks,
    pull_requests = excluded.pull_requests,
    pushes = excluded.pushes,
    contributor_logins = excluded.contributor_logins,
    collection_names = excluded.collection_names,
    updated_at = excluded.updated_at
"""

SELECT_TRENDS_SQL = """
SELECT t.*, s.text AS summary, s.produced_at AS summary_produced_at
FROM trending_repos t
LEFT JOIN summaries s ON s.date = t.date AND s.repo_id = t.repo_id
WHERE t.date = ?
ORDER BY t.rank ASC, t.repo_id ASC
"""


# ============================================================================
# Connection Management
# ============================================================================


class SQLiteDatabase:
    """
    Owns the sqlite3 connection and schema.

    The connection is shared across worker threads; the lock serializes
    access so each operation sees a consistent database.
    """

    def __init__(self, path: str):
        self.path = path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def connect(self) -> sqlite3.Connection:
        """
        Open the database file and create the schema.

        Raises:
            ConnectionError: If the file cannot be opened
        """
        if self._conn is not None:
            return self._conn

        try:
            if self.path != ":memory:":
                parent = os.path.dirname(os.path.abspath(self.path))
                os.makedirs(parent, exist_ok=True)

            conn = sqlite3.connect(self.path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(SCHEMA)
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to open database {self.path}: {e}")
            raise ConnectionError(f"Database connection failed: {e}")

        self._conn = conn
        logger.info(f"SQLite database opened: {self.path}")
        return conn

    def run(self, func: Callable[[sqlite3.Connection], T]) -> T:
        """Run func with the connection inside a transaction."""
        conn = self.connect()
        with self._lock:
            try:
                with conn:
                    return func(conn)
            except sqlite3.IntegrityError as e:
                raise IntegrityError(str(e)) from e
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    def close(self):
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("SQLite database closed")


# ============================================================================
# Helper Functions
# ============================================================================


def _iso(day: date) -> str:
    return day.isoformat()


def _row_to_entry(row: sqlite3.Row, languages: Optional[List[LanguageShare]]) -> TrendEntry:
    produced_at = row["summary_produced_at"]
    return TrendEntry(
        date=date.fromisoformat(row["date"]),
        repo_id=row["repo_id"],
        repo_name=row["repo_name"],
        url=row["url"],
        rank=row["rank"],
        score=row["score"],
        primary_language=row["primary_language"],
        languages=languages,
        description=row["description"],
        readme_text=row["readme_text"],
        stars=row["stars"],
        forks=row["forks"],
        pull_requests=row["pull_requests"],
        pushes=row["pushes"],
        contributor_logins=row["contributor_logins"],
        collection_names=row["collection_names"],
        summary=row["summary"],
        summary_produced_at=datetime.fromisoformat(produced_at) if produced_at else None,
    )


def _row_to_language_trend(row: sqlite3.Row) -> LanguageTrend:
    return LanguageTrend(
        period=date.fromisoformat(row["period"]),
        language=row["language"],
        normalized_percentage=row["normalized_percentage"],
        repo_count=row["repo_count"],
    )


# ============================================================================
# TrendStore
# ============================================================================


class SQLiteTrendStore(BaseTrendStore):
    """SQLite implementation of TrendStore."""

    def __init__(self, database: SQLiteDatabase):
        self.database = database

    @classmethod
    def open(cls, path: str) -> "SQLiteTrendStore":
        database = SQLiteDatabase(path)
        database.connect()
        return cls(database)

    async def _run(self, func: Callable[[sqlite3.Connection], T]) -> T:
        return await asyncio.to_thread(self.database.run, func)

    async def upsert_snapshot(self, snapshot: RepoSnapshot) -> None:
        day = _iso(snapshot.date)
        params = (
            day,
            snapshot.repo_id,
            snapshot.repo_name,
            snapshot.url,
            snapshot.rank,
            snapshot.score,
            snapshot.primary_language,
            1 if snapshot.languages is not None else 0,
            snapshot.description,
            snapshot.readme_text,
            snapshot.stars,
            snapshot.forks,
            snapshot.pull_requests,
            snapshot.pushes,
            snapshot.contributor_logins,
            snapshot.collection_names,
            datetime.utcnow().isoformat(),
        )

        def _upsert(conn: sqlite3.Connection) -> None:
            conn.execute(UPSERT_SNAPSHOT_SQL, params)
            if snapshot.languages is not None:
                conn.execute(
                    "DELETE FROM repo_languages WHERE date = ? AND repo_id = ?",
                    (day, snapshot.repo_id),
                )
                conn.executemany(
                    "INSERT INTO repo_languages (date, repo_id, language, percentage) VALUES (?, ?, ?, ?)",
                    [(day, snapshot.repo_id, s.language, s.percentage) for s in snapshot.languages],
                )

        await self._run(_upsert)

    async def save_summary(self, summary: Summary) -> None:
        params = (_iso(summary.date), summary.repo_id, summary.text, summary.produced_at.isoformat())

        def _save(conn: sqlite3.Connection) -> None:
            conn.execute(
                """INSERT INTO summaries (date, repo_id, text, produced_at) VALUES (?, ?, ?, ?)
                   ON CONFLICT (date, repo_id) DO UPDATE SET
                       text = excluded.text,
                       produced_at = excluded.produced_at""",
                params,
            )

        await self._run(_save)

    async def get_summarized_repo_ids(self, day: date) -> Set[int]:
        def _query(conn: sqlite3.Connection) -> Set[int]:
            rows = conn.execute("SELECT repo_id FROM summaries WHERE date = ?", (_iso(day),))
            return {row["repo_id"] for row in rows}

        return await self._run(_query)

    async def get_trends(self, day: date) -> List[TrendEntry]:
        def _query(conn: sqlite3.Connection) -> List[TrendEntry]:
            rows = conn.execute(SELECT_TRENDS_SQL, (_iso(day),)).fetchall()
            language_rows = conn.execute(
                """SELECT repo_id, language, percentage FROM repo_languages
                   WHERE date = ? ORDER BY repo_id, percentage DESC, language ASC""",
                (_iso(day),),
            ).fetchall()

            languages: Dict[int, List[LanguageShare]] = {}
            for lr in language_rows:
                languages.setdefault(lr["repo_id"], []).append(
                    LanguageShare(language=lr["language"], percentage=lr["percentage"])
                )

            return [
                _row_to_entry(
                    row,
                    languages.get(row["repo_id"], []) if row["languages_fetched"] else None,
                )
                for row in rows
            ]

        return await self._run(_query)

    async def list_language_shares(self, start: date, end: date) -> List[List[LanguageShare]]:
        def _query(conn: sqlite3.Connection) -> List[List[LanguageShare]]:
            rows = conn.execute(
                """SELECT l.date, l.repo_id, l.language, l.percentage
                   FROM repo_languages l
                   JOIN trending_repos t ON t.date = l.date AND t.repo_id = l.repo_id
                   WHERE l.date BETWEEN ? AND ?
                   ORDER BY l.date, l.repo_id""",
                (_iso(start), _iso(end)),
            ).fetchall()

            grouped: "OrderedDict[tuple, List[LanguageShare]]" = OrderedDict()
            for row in rows:
                grouped.setdefault((row["date"], row["repo_id"]), []).append(
                    LanguageShare(language=row["language"], percentage=row["percentage"])
                )
            return list(grouped.values())

        return await self._run(_query)

    async def replace_language_trends(
        self, kind: str, period: date, rows: Sequence[LanguageTrend]
    ) -> None:
        if kind not in (DAILY, WEEKLY):
            raise ValueError(f"Unknown rollup kind: {kind}")

        def _replace(conn: sqlite3.Connection) -> None:
            conn.execute(
                "DELETE FROM language_trends WHERE kind = ? AND period = ?", (kind, _iso(period))
            )
            conn.executemany(
                """INSERT INTO language_trends (kind, period, language, normalized_percentage, repo_count)
                   VALUES (?, ?, ?, ?, ?)""",
                [
                    (kind, _iso(period), r.language, r.normalized_percentage, r.repo_count)
                    for r in rows
                ],
            )

        await self._run(_replace)
        logger.info(f"Saved {len(rows)} {kind} language trends for {period}")

    async def get_language_trends(self, kind: str, period: date) -> List[LanguageTrend]:
        def _query(conn: sqlite3.Connection) -> List[LanguageTrend]:
            rows = conn.execute(
                """SELECT period, language, normalized_percentage, repo_count
                   FROM language_trends WHERE kind = ? AND period = ?
                   ORDER BY normalized_percentage DESC, language ASC""",
                (kind, _iso(period)),
            ).fetchall()
            return [_row_to_language_trend(row) for row in rows]

        return await self._run(_query)

    async def close(self) -> None:
        await asyncio.to_thread(self.database.close)
