"""Headless game session: builds the world, the event bus and all systems.

The session is seeded with the ledger's (score, moves, reset) snapshot and talks
to the ledger only through a LedgerTransport.
"""
from __future__ import annotations

import random
from concurrent.futures import Executor
from typing import Optional

from tilematch.components.economy_view import EconomyView
from tilematch.components.grid import Grid
from tilematch.components.notifications import NotificationQueue
from tilematch.components.session_state import SessionState
from tilematch.events.bus import EventBus, EVENT_TICK, EVENT_TILE_CLICK, EVENT_TILE_SWAP_REQUEST
from tilematch.ledger.economy import PlayerEconomy
from tilematch.ledger.ledger import MoveEconomyLedger
from tilematch.ledger.transport import InProcessTransport, LedgerTransport
from tilematch.systems.board import BoardSystem
from tilematch.systems.ledger_gateway import LedgerGatewaySystem
from tilematch.systems.match_resolution import MatchResolutionSystem
from tilematch.systems.notification_system import NotificationSystem
from tilematch.systems.reconciliation import ReconciliationSystem
from tilematch.systems.session_utils import (
    get_economy_view,
    get_or_create_notifications,
    get_session_state,
)
from tilematch.utils.clock import Clock
from tilematch.world import create_world


class GameSession:
    def __init__(
        self,
        user_id: str,
        snapshot: PlayerEconomy,
        transport: LedgerTransport,
        *,
        rng: random.Random | None = None,
        clock: Clock | None = None,
        executor: Executor | None = None,
        max_board_attempts: Optional[int] = None,
    ):
        self.event_bus = EventBus()
        self.world = create_world(
            user_id=user_id,
            score=snapshot.score,
            moves_remaining=snapshot.moves_remaining,
            reset_at=snapshot.reset_at,
            rng=rng,
        )
        self.board_system = BoardSystem(self.world, self.event_bus, max_attempts=max_board_attempts)
        self.match_resolution_system = MatchResolutionSystem(self.world, self.event_bus)
        self.gateway = LedgerGatewaySystem(self.world, self.event_bus, transport, executor=executor)
        self.reconciliation = ReconciliationSystem(self.world, self.event_bus, clock=clock)
        self.notification_system = NotificationSystem(self.world, self.event_bus, clock=clock)
        # A budget parked at zero may already be due for a refill on the ledger side.
        if snapshot.moves_remaining == 0 and snapshot.reset_at is not None:
            self.reconciliation.refresh()

    @classmethod
    def start(
        cls,
        ledger: MoveEconomyLedger,
        user_id: str,
        **kwargs,
    ) -> "GameSession":
        """Register the user if needed and open a session against an in-process ledger."""
        ledger.register_user(user_id)
        return cls(user_id, ledger.snapshot(user_id), InProcessTransport(ledger), **kwargs)

    @property
    def grid(self) -> Grid:
        return self.board_system.grid

    @property
    def economy(self) -> EconomyView:
        return get_economy_view(self.world)

    @property
    def state(self) -> SessionState:
        return get_session_state(self.world)

    @property
    def notifications(self) -> NotificationQueue:
        return get_or_create_notifications(self.world)

    def click(self, index: int) -> None:
        self.event_bus.emit(EVENT_TILE_CLICK, index=index)

    def swap(self, src: int, dst: int) -> None:
        self.event_bus.emit(EVENT_TILE_SWAP_REQUEST, src=src, dst=dst)

    def tick(self, dt: float = 0.0) -> None:
        self.event_bus.emit(EVENT_TICK, dt=dt)

    def abandon_pending(self) -> bool:
        return self.reconciliation.abandon()

    def resync(self, snapshot: PlayerEconomy) -> None:
        self.reconciliation.resync(snapshot)
