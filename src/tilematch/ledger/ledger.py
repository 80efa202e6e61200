from __future__ import annotations

import logging
import threading
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Tuple, Union

from pydantic import ValidationError

from tilematch.constants import MAX_MOVES, REFILL_WINDOW
from tilematch.ledger.economy import PlayerEconomy, with_lazy_refill
from tilematch.ledger.schema import (
    ApplyMoveRequest,
    InvalidRequest,
    MoveApplied,
    MoveRejected,
    UserNotFound,
)
from tilematch.ledger.store import EconomyStore, InMemoryEconomyStore
from tilematch.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)

ApplyMoveResult = Union[MoveApplied, MoveRejected, UserNotFound]


class UnknownUserError(KeyError):
    """Raised by snapshot() for a user id with no economy record."""


class MoveEconomyLedger:
    """Authoritative score and move budget per user.

    Every read-modify-write for a user runs under that user's lock, so two
    requests racing for the last move are linearised and only one passes the
    balance check. Different users never contend.

    Refills are lazy: a depleted budget is restored to MAX_MOVES only when a
    request arrives after its reset instant, before that request is checked.
    """

    def __init__(
        self,
        store: EconomyStore | None = None,
        *,
        clock: Clock | None = None,
        refill_window: timedelta = REFILL_WINDOW,
    ) -> None:
        self._store = store if store is not None else InMemoryEconomyStore()
        self._clock = clock or utc_now
        self._refill_window = refill_window
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def store(self) -> EconomyStore:
        return self._store

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    def register_user(self, user_id: str) -> PlayerEconomy:
        """Create a fresh economy on first contact; return the existing one otherwise."""
        if not user_id:
            raise ValueError("user_id must be non-empty")
        with self._lock_for(user_id):
            existing = self._store.get(user_id)
            if existing is not None:
                return existing
            economy = PlayerEconomy(score=0, moves_remaining=MAX_MOVES, reset_at=None)
            self._store.put(user_id, economy)
            logger.info("Registered economy for user %s", user_id)
            return economy.copy()

    def snapshot(self, user_id: str) -> PlayerEconomy:
        """Current state as a new session should see it (refill applied, nothing persisted)."""
        economy = self._store.get(user_id)
        if economy is None:
            raise UnknownUserError(user_id)
        return with_lazy_refill(economy, self._clock())

    def apply_move(self, user_id: str, points_earned: int, moves_used: int) -> ApplyMoveResult:
        if points_earned < 0 or moves_used < 0:
            raise ValueError("points_earned and moves_used must be non-negative")
        # Unknown ids get no lock entry. Records are never removed once created.
        if self._store.get(user_id) is None:
            logger.error("apply_move for unknown user %s", user_id)
            return UserNotFound()
        with self._lock_for(user_id):
            stored = self._store.get(user_id)
            now = self._clock()
            economy = with_lazy_refill(stored, now)
            if economy.moves_remaining < moves_used:
                logger.warning(
                    "Rejected move for %s: %d requested, %d available",
                    user_id, moves_used, economy.moves_remaining,
                )
                return MoveRejected(available_moves=economy.moves_remaining)
            economy.moves_remaining -= moves_used
            economy.score += points_earned
            if moves_used > 0 and economy.moves_remaining == 0:
                economy.reset_at = now + self._refill_window
            self._store.put(user_id, economy)
            return MoveApplied(
                new_score=economy.score,
                remaining_moves=economy.moves_remaining,
                next_reset=economy.reset_at,
            )

    def handle_request(self, payload: Mapping[str, Any]) -> dict:
        """Wire entry point: validate a camelCase request and return a camelCase reply."""
        try:
            request = ApplyMoveRequest.model_validate(dict(payload))
        except (ValidationError, TypeError) as exc:
            logger.warning("Invalid ledger request: %s", exc)
            return InvalidRequest().to_wire()
        return self.apply_move(request.user_id, request.points_earned, request.moves_used).to_wire()

    def leaderboard(self, limit: int = 10) -> List[Tuple[str, int]]:
        """User ids with their scores, highest first (ties broken by user id)."""
        ranked = sorted(
            ((user_id, record.score) for user_id, record in self._store.all()),
            key=lambda item: (-item[1], item[0]),
        )
        return ranked[:limit] if limit > 0 else []
