"""Leaderboard - Pure ranking of users by recent execution score.

All functions are pure: same input always produces same output, no side effects.
"""

from typing import Mapping, Sequence

from .models import DaySnapshot, LeaderboardEntry, StoredProfile
from .scoring import calculate_execution_score, pad_window


LEADERBOARD_WINDOW_DAYS = 3
LEADERBOARD_SIZE = 10


def rank_leaderboard(
    user_days: Mapping[str, Sequence[DaySnapshot]],
    profiles: Mapping[str, StoredProfile],
    window: int = LEADERBOARD_WINDOW_DAYS,
    limit: int = LEADERBOARD_SIZE,
) -> list[LeaderboardEntry]:
    """Rank users by their execution score over the recent window.

    Each user's days are padded with zero snapshots to the window length so
    that days without logs count against the user. Users without a profile
    are skipped.

    Args:
        user_days: Snapshots per user id within the window
        profiles: Stored profiles per user id
        window: Number of days each user is scored over
        limit: Maximum number of entries returned

    Returns:
        Entries sorted by score (highest first), ties by user id
    """
    entries: list[LeaderboardEntry] = []

    for user_id, days in user_days.items():
        stored = profiles.get(user_id)
        if stored is None:
            continue

        score = calculate_execution_score(
            pad_window(days, window),
            stored.metrics.target_calories,
        )
        entries.append(
            LeaderboardEntry(user_id=user_id, score=score, goal=stored.profile.goal)
        )

    entries.sort(key=lambda e: (-e.score, e.user_id))
    return entries[:limit]
