from __future__ import annotations

import logging
from typing import Optional

from esper import World

from tilematch.components.pending_move import PendingMove
from tilematch.constants import MAX_MOVES
from tilematch.events.bus import (
    EventBus,
    EVENT_ECONOMY_CHANGED,
    EVENT_ECONOMY_USER_MISSING,
    EVENT_LEDGER_FAILED,
    EVENT_LEDGER_REPLY,
    EVENT_LEDGER_REQUEST,
    EVENT_MOVE_FAILED,
    EVENT_MOVE_REJECTED,
    EVENT_MOVE_RESOLVED,
    EVENT_MOVES_REFILLED,
    EVENT_SWAP_SETTLED,
    EVENT_TICK,
)
from tilematch.ledger.economy import PlayerEconomy
from tilematch.ledger.schema import ApplyMoveRequest, MoveApplied, MoveRejected, UserNotFound
from tilematch.systems.session_utils import (
    get_economy_view,
    get_pending_move,
    get_session_entity,
    get_session_state,
)
from tilematch.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)


class ReconciliationSystem:
    """Keeps the local economy view in step with the ledger.

    Two-phase protocol per resolved move:
      - tentative: the delta is applied to EconomyView at once and recorded as a
        PendingMove before the ledger request goes out.
      - confirm: a MoveApplied reply overwrites the view with the ledger's values.
      - compensate: any other outcome subtracts exactly the recorded delta.
    Only one request is pending at a time; the swap lock in SessionState is held
    until it settles.
    After a rejection the view is compensated and then refreshed with a
    zero-delta request, so it learns the ledger's budget and reset instant.

    A countdown to reset_at runs on EVENT_TICK. When it elapses the view is
    refilled locally; the ledger re-checks on the next real request.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        clock: Clock | None = None,
        max_moves: int = MAX_MOVES,
    ):
        self.world = world
        self.event_bus = event_bus
        self._clock = clock or utc_now
        self.max_moves = max_moves
        self._next_request_id = 1
        self.event_bus.subscribe(EVENT_MOVE_RESOLVED, self.on_move_resolved)
        self.event_bus.subscribe(EVENT_LEDGER_REPLY, self.on_ledger_reply)
        self.event_bus.subscribe(EVENT_LEDGER_FAILED, self.on_ledger_failed)
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)

    # ------------------------------------------------------------------
    # Outgoing
    # ------------------------------------------------------------------
    def on_move_resolved(self, sender, **kwargs):
        points = int(kwargs.get('points_earned', 0))
        moves = int(kwargs.get('moves_used', 0))
        self._submit(points, moves)

    def refresh(self) -> Optional[int]:
        """Send a zero-delta request so the ledger can report (and lazily refill) the budget.

        Returns the request id, or None when another request is still pending.
        """
        if get_pending_move(self.world) is not None:
            return None
        return self._submit(0, 0)

    def _submit(self, points: int, moves: int) -> int:
        state = get_session_state(self.world)
        view = get_economy_view(self.world)
        request_id = self._next_request_id
        self._next_request_id += 1
        pending = PendingMove(request_id=request_id, points_earned=points, moves_used=moves)
        view.apply_delta(pending.points_earned, pending.moves_used)
        self.world.add_component(get_session_entity(self.world), pending)
        state.swap_in_flight = True
        self._emit_view('tentative')
        self.event_bus.emit(
            EVENT_LEDGER_REQUEST,
            request_id=request_id,
            request=ApplyMoveRequest(user_id=state.user_id, points_earned=points, moves_used=moves),
        )
        return request_id

    # ------------------------------------------------------------------
    # Incoming
    # ------------------------------------------------------------------
    def on_ledger_reply(self, sender, **kwargs):
        request_id = kwargs.get('request_id')
        reply = kwargs.get('reply')
        pending = self._take_pending(request_id)
        if pending is None:
            logger.info("Dropping ledger reply for request %s; nothing pending", request_id)
            return
        if isinstance(reply, MoveApplied):
            view = get_economy_view(self.world)
            view.overwrite(reply.new_score, reply.remaining_moves, reply.next_reset)
            self._emit_view('confirmed')
            self._settle(request_id, 'confirmed')
            return
        self._compensate(pending)
        if isinstance(reply, MoveRejected):
            self._settle(request_id, 'rejected')
            # The rejection carries no reset instant; a zero-delta request fetches it.
            self.refresh()
            self.event_bus.emit(
                EVENT_MOVE_REJECTED,
                request_id=request_id,
                available_moves=reply.available_moves,
                reset_at=get_economy_view(self.world).reset_at,
            )
        elif isinstance(reply, UserNotFound):
            state = get_session_state(self.world)
            state.closed = True
            logger.error("Ledger has no economy for user %s; closing session", state.user_id)
            self.event_bus.emit(EVENT_ECONOMY_USER_MISSING, user_id=state.user_id)
            self._settle(request_id, 'user_missing')
        else:
            message = getattr(reply, 'message', 'unexpected ledger reply')
            self.event_bus.emit(EVENT_MOVE_FAILED, request_id=request_id, reason='invalid', message=message)
            self._settle(request_id, 'failed')

    def on_ledger_failed(self, sender, **kwargs):
        request_id = kwargs.get('request_id')
        pending = self._take_pending(request_id)
        if pending is None:
            return
        self._compensate(pending)
        error = kwargs.get('error')
        self.event_bus.emit(
            EVENT_MOVE_FAILED,
            request_id=request_id,
            reason='transport',
            message=str(error) if error is not None else 'transport failure',
        )
        self._settle(request_id, 'failed')

    # ------------------------------------------------------------------
    # Abandon / resync
    # ------------------------------------------------------------------
    def abandon(self) -> bool:
        """Stop waiting for the pending request.

        The ledger may still commit it, so nothing is compensated; the view is
        flagged for resync instead and a late reply will be ignored.
        """
        found = get_pending_move(self.world)
        if found is None:
            return False
        entity, pending = found
        self.world.remove_component(entity, PendingMove)
        get_session_state(self.world).needs_resync = True
        self._settle(pending.request_id, 'abandoned')
        return True

    def resync(self, snapshot: PlayerEconomy) -> None:
        """Overwrite the view from a fresh ledger snapshot."""
        view = get_economy_view(self.world)
        view.overwrite(snapshot.score, snapshot.moves_remaining, snapshot.reset_at)
        get_session_state(self.world).needs_resync = False
        self._emit_view('resync')

    # ------------------------------------------------------------------
    # Countdown
    # ------------------------------------------------------------------
    def on_tick(self, sender, **kwargs):
        view = get_economy_view(self.world)
        if view.reset_at is None or self._clock() < view.reset_at:
            return
        view.moves_remaining = self.max_moves
        view.reset_at = None
        self.event_bus.emit(EVENT_MOVES_REFILLED, moves_remaining=view.moves_remaining, local=True)
        self._emit_view('local_refill')

    # ------------------------------------------------------------------
    def _take_pending(self, request_id) -> Optional[PendingMove]:
        found = get_pending_move(self.world)
        if found is None:
            return None
        entity, pending = found
        if pending.request_id != request_id:
            return None
        self.world.remove_component(entity, PendingMove)
        return pending

    def _compensate(self, pending: PendingMove) -> None:
        view = get_economy_view(self.world)
        view.apply_delta(-pending.points_earned, -pending.moves_used)
        self._emit_view('compensated')

    def _settle(self, request_id: int, outcome: str) -> None:
        get_session_state(self.world).swap_in_flight = False
        self.event_bus.emit(EVENT_SWAP_SETTLED, request_id=request_id, outcome=outcome)

    def _emit_view(self, source: str) -> None:
        view = get_economy_view(self.world)
        self.event_bus.emit(
            EVENT_ECONOMY_CHANGED,
            score=view.score,
            moves_remaining=view.moves_remaining,
            reset_at=view.reset_at,
            source=source,
        )
