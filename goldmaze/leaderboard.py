"""
Gold Maze - Leaderboard Queries

Filtering and ordering of score records. Every function works on a
snapshot (a plain sequence) and never touches the store itself.

RANK ORDER:
1. finished in time before timed out
2. more gold before less
3. faster before slower
Remaining ties keep append order.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from goldmaze.models import ScoreRecord


DEFAULT_TOP_LIMIT = 10


class SortOrder(Enum):
    RECENT = "recent"
    RANK = "rank"


@dataclass(frozen=True)
class ScoreQuery:
    map_id: Optional[str] = None
    name_contains: Optional[str] = None
    sort_by: SortOrder = SortOrder.RANK
    limit: Optional[int] = None


def rank_key(record: ScoreRecord):
    return (not record.completed_in_time, -record.gold_score, record.time_completed)


def query_scores(records: Sequence[ScoreRecord], query: ScoreQuery) -> List[ScoreRecord]:
    """Filter and sort a snapshot of records"""
    selected = list(records)

    if query.map_id is not None:
        selected = [r for r in selected if r.map_id == query.map_id]

    if query.name_contains:
        needle = query.name_contains.casefold()
        selected = [r for r in selected if needle in r.player_name.casefold()]

    if query.sort_by == SortOrder.RECENT:
        # Newest first; among equal timestamps the later append wins
        indexed = list(enumerate(selected))
        indexed.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
        selected = [record for _, record in indexed]
    else:
        selected.sort(key=rank_key)

    if query.limit is not None:
        selected = selected[:max(0, query.limit)]
    return selected


def top_scores(records: Sequence[ScoreRecord], limit: int = DEFAULT_TOP_LIMIT) -> List[ScoreRecord]:
    """Best completed runs across all maps, by gold collected"""
    completed = [r for r in records if r.completed_in_time]
    completed.sort(key=lambda r: -r.gold_score)
    return completed[:max(0, limit)]
