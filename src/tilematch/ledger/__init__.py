"""Authoritative per-user score and move-budget ledger."""

from tilematch.ledger.economy import PlayerEconomy
from tilematch.ledger.ledger import MoveEconomyLedger, UnknownUserError
from tilematch.ledger.schema import (
    ApplyMoveRequest,
    InvalidRequest,
    LedgerReply,
    MoveApplied,
    MoveRejected,
    UserNotFound,
)
from tilematch.ledger.store import EconomyStore, InMemoryEconomyStore, JsonEconomyStore
from tilematch.ledger.transport import InProcessTransport, LedgerTransport, LedgerTransportError

__all__ = [
    "ApplyMoveRequest",
    "EconomyStore",
    "InMemoryEconomyStore",
    "InProcessTransport",
    "InvalidRequest",
    "JsonEconomyStore",
    "LedgerReply",
    "LedgerTransport",
    "LedgerTransportError",
    "MoveApplied",
    "MoveEconomyLedger",
    "MoveRejected",
    "PlayerEconomy",
    "UnknownUserError",
    "UserNotFound",
]
