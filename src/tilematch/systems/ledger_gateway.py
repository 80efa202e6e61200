from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from typing import Dict

from esper import World

from tilematch.events.bus import (
    EventBus,
    EVENT_LEDGER_FAILED,
    EVENT_LEDGER_REPLY,
    EVENT_LEDGER_REQUEST,
    EVENT_TICK,
)
from tilematch.ledger.schema import ApplyMoveRequest
from tilematch.ledger.transport import LedgerTransport, LedgerTransportError

logger = logging.getLogger(__name__)


class LedgerGatewaySystem:
    """Carries EVENT_LEDGER_REQUEST to the ledger and brings the answer back.

    Without an executor the transport is called inline and the reply is emitted
    before on_request returns. With an executor the call runs on a worker and
    finished futures are drained on EVENT_TICK, so replies are always handled on
    the session thread. Only LedgerTransportError is converted to
    EVENT_LEDGER_FAILED; anything else is a bug and propagates.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        transport: LedgerTransport,
        *,
        executor: Executor | None = None,
    ):
        self.world = world
        self.event_bus = event_bus
        self.transport = transport
        self.executor = executor
        self._inflight: Dict[int, Future] = {}
        self.event_bus.subscribe(EVENT_LEDGER_REQUEST, self.on_request)
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)

    @property
    def pending_count(self) -> int:
        return len(self._inflight)

    def on_request(self, sender, **kwargs):
        request_id = kwargs.get('request_id')
        request = kwargs.get('request')
        if request_id is None or not isinstance(request, ApplyMoveRequest):
            return
        if self.executor is None:
            self._deliver_inline(request_id, request)
            return
        self._inflight[request_id] = self.executor.submit(self.transport.apply_move, request)

    def on_tick(self, sender, **kwargs):
        if not self._inflight:
            return
        finished = [rid for rid, future in self._inflight.items() if future.done()]
        for request_id in sorted(finished):
            future = self._inflight.pop(request_id)
            try:
                reply = future.result()
            except LedgerTransportError as exc:
                self._fail(request_id, exc)
                continue
            self.event_bus.emit(EVENT_LEDGER_REPLY, request_id=request_id, reply=reply)

    def _deliver_inline(self, request_id: int, request: ApplyMoveRequest) -> None:
        try:
            reply = self.transport.apply_move(request)
        except LedgerTransportError as exc:
            self._fail(request_id, exc)
            return
        self.event_bus.emit(EVENT_LEDGER_REPLY, request_id=request_id, reply=reply)

    def _fail(self, request_id: int, exc: LedgerTransportError) -> None:
        logger.warning("Ledger request %s failed: %s", request_id, exc)
        self.event_bus.emit(EVENT_LEDGER_FAILED, request_id=request_id, error=exc)
