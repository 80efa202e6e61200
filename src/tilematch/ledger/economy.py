from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from tilematch.constants import MAX_MOVES


@dataclass(slots=True)
class PlayerEconomy:
    """Ledger-side record of a user's score and move budget.

    reset_at is set only while the budget sits at zero after a charged move,
    and marks when it becomes eligible for a refill.
    """

    score: int = 0
    moves_remaining: int = MAX_MOVES
    reset_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.score < 0:
            raise ValueError(f"score must be >= 0, got {self.score}")
        if not 0 <= self.moves_remaining <= MAX_MOVES:
            raise ValueError(f"moves_remaining must be within [0, {MAX_MOVES}], got {self.moves_remaining}")

    def refill_due(self, now: datetime) -> bool:
        return self.reset_at is not None and now > self.reset_at

    def copy(self) -> "PlayerEconomy":
        return replace(self)


def with_lazy_refill(economy: PlayerEconomy, now: datetime, *, max_moves: int = MAX_MOVES) -> PlayerEconomy:
    """Return a copy with the budget restored if its reset instant has passed."""
    refreshed = economy.copy()
    if refreshed.refill_due(now):
        refreshed.moves_remaining = max_moves
        refreshed.reset_at = None
    return refreshed
