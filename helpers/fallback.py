import random
from typing import List

from schemas.leaderboard import LeaderboardRecord

AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed=User{}"


def generate_sample_leaderboard(count: int = 200, seed: int = 20240101) -> List[LeaderboardRecord]:
    """Sample leaderboard served when the store cannot be read.

    Seeded so repeated fallbacks render the same board.
    """
    rng = random.Random(seed)
    records = []
    for i in range(1, count + 1):
        records.append(LeaderboardRecord(
            user_id=str(i),
            user_name=f"User {i}",
            avatar=AVATAR_URL.format(i),
            total_solved=rng.randint(50, 349),
            current_streak=rng.randint(0, 29),
            missed_days=rng.randint(0, 14),
            penalty_amount=float(rng.randint(0, 99)),
        ))
    return records
