from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class EconomyView:
    """Client-side cached copy of the ledger's score and move budget."""

    score: int = 0
    moves_remaining: int = 0
    reset_at: Optional[datetime] = None

    def apply_delta(self, points: int, moves: int) -> None:
        self.score += points
        self.moves_remaining -= moves

    def overwrite(self, score: int, moves_remaining: int, reset_at: Optional[datetime]) -> None:
        self.score = score
        self.moves_remaining = moves_remaining
        self.reset_at = reset_at
