"""
Score storage for Gold Maze

Append-only stores of ScoreRecords. Subclasses only implement append()
and snapshot(); leaderboard queries are built on top of snapshots so
every backend filters and sorts the same way.
"""
import abc
import logging
from datetime import timedelta
from typing import List, Optional

import aiosqlite

from goldmaze.leaderboard import DEFAULT_TOP_LIMIT, ScoreQuery, query_scores, top_scores
from goldmaze.models import ScoreRecord, utc_now

logger = logging.getLogger(__name__)

DATABASE_PATH = "goldmaze.db"


class ScoreStore(abc.ABC):
    """Append-only collection of score records"""

    async def init(self) -> None:
        """Prepare the backend. Called once before first use."""

    async def close(self) -> None:
        """Release the backend. Called once at shutdown."""

    @abc.abstractmethod
    async def append(self, record: ScoreRecord) -> ScoreRecord:
        """Store a record at the end of the sequence"""

    @abc.abstractmethod
    async def snapshot(self, map_id: Optional[str] = None) -> List[ScoreRecord]:
        """Point-in-time copy of stored records in append order"""

    async def record_score(
        self,
        map_id: str,
        player_name: str,
        character: str,
        gold_score: int,
        time_completed: int,
        completed_in_time: bool,
    ) -> ScoreRecord:
        """Create a record with a fresh id and timestamp and store it"""
        record = ScoreRecord(
            map_id=map_id,
            player_name=player_name,
            character=character,
            gold_score=gold_score,
            time_completed=time_completed,
            completed_in_time=completed_in_time,
        )
        return await self.append(record)

    async def query_scores(self, query: ScoreQuery) -> List[ScoreRecord]:
        records = await self.snapshot(map_id=query.map_id)
        return query_scores(records, query)

    async def top_scores(self, limit: int = DEFAULT_TOP_LIMIT) -> List[ScoreRecord]:
        return top_scores(await self.snapshot(), limit)

    async def all_scores(self) -> List[ScoreRecord]:
        return await self.snapshot()


class InMemoryScoreStore(ScoreStore):
    """Process-local store. Contents are lost on restart."""

    def __init__(self):
        self._records: List[ScoreRecord] = []

    async def append(self, record: ScoreRecord) -> ScoreRecord:
        self._records.append(record)
        logger.info(
            f"Score recorded: {record.player_name} on {record.map_id} "
            f"gold={record.gold_score} time={record.time_completed}s completed={record.completed_in_time}"
        )
        return record

    async def snapshot(self, map_id: Optional[str] = None) -> List[ScoreRecord]:
        records = list(self._records)
        if map_id is not None:
            records = [r for r in records if r.map_id == map_id]
        return records

    def __len__(self) -> int:
        return len(self._records)


class SqliteScoreStore(ScoreStore):
    """Async SQLite store"""

    def __init__(self, db_path: str = DATABASE_PATH):
        self.db_path = db_path

    async def init(self) -> None:
        """Initialize database tables"""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS scores (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT UNIQUE NOT NULL,
                    map_id TEXT NOT NULL,
                    player_name TEXT NOT NULL,
                    character TEXT NOT NULL,
                    gold_score INTEGER NOT NULL,
                    time_completed INTEGER NOT NULL,
                    completed_in_time INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            await db.execute("CREATE INDEX IF NOT EXISTS idx_scores_map ON scores (map_id)")
            await db.commit()
        logger.info(f"Score database initialized at {self.db_path}")

    async def append(self, record: ScoreRecord) -> ScoreRecord:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT INTO scores
                (id, map_id, player_name, character, gold_score, time_completed, completed_in_time, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    record.id,
                    record.map_id,
                    record.player_name,
                    record.character,
                    record.gold_score,
                    record.time_completed,
                    int(record.completed_in_time),
                    record.created_at.isoformat(),
                ),
            )
            await db.commit()
        logger.info(f"Score recorded: {record.player_name} on {record.map_id} gold={record.gold_score}")
        return record

    async def snapshot(self, map_id: Optional[str] = None) -> List[ScoreRecord]:
        sql = "SELECT * FROM scores"
        params: tuple = ()
        if map_id is not None:
            sql += " WHERE map_id = ?"
            params = (map_id,)
        sql += " ORDER BY seq"

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(sql, params) as cursor:
                rows = await cursor.fetchall()
        return [ScoreRecord.from_dict(dict(row)) for row in rows]


def create_score_store(backend: str, db_path: str = DATABASE_PATH) -> ScoreStore:
    """Build the store named by configuration"""
    if backend == "memory":
        return InMemoryScoreStore()
    if backend == "sqlite":
        return SqliteScoreStore(db_path)
    raise ValueError(f"Unknown score store backend: {backend}")


# Demo results shown on a fresh install
SAMPLE_SCORES = [
    {"map_id": "map1", "player_name": "Alice", "character": "explorer", "gold_score": 5,
     "time_completed": 45, "completed_in_time": True, "days_ago": 2},
    {"map_id": "map2", "player_name": "Bob", "character": "ninja", "gold_score": 6,
     "time_completed": 85, "completed_in_time": True, "days_ago": 1},
    {"map_id": "map3", "player_name": "Charlie", "character": "robot", "gold_score": 8,
     "time_completed": 110, "completed_in_time": True, "days_ago": 0},
    {"map_id": "map1", "player_name": "David", "character": "explorer", "gold_score": 3,
     "time_completed": 60, "completed_in_time": False, "days_ago": 3},
    {"map_id": "map4", "player_name": "Emma", "character": "ninja", "gold_score": 12,
     "time_completed": 140, "completed_in_time": True, "days_ago": 1.5},
]


async def seed_sample_scores(store: ScoreStore) -> int:
    """Append the demo results to an empty store. Returns how many were added."""
    if await store.snapshot():
        return 0
    now = utc_now()
    for sample in SAMPLE_SCORES:
        fields = {k: v for k, v in sample.items() if k != "days_ago"}
        await store.append(ScoreRecord(created_at=now - timedelta(days=sample["days_ago"]), **fields))
    return len(SAMPLE_SCORES)
