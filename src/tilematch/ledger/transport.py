from typing import Protocol

from pydantic import ValidationError

from tilematch.ledger.ledger import MoveEconomyLedger
from tilematch.ledger.schema import ApplyMoveRequest, LedgerReply, parse_reply


class LedgerTransportError(RuntimeError):
    """The request may not have reached the ledger, or its reply was lost or unreadable."""


class LedgerTransport(Protocol):
    def apply_move(self, request: ApplyMoveRequest) -> LedgerReply:
        ...


class InProcessTransport:
    """Sends requests to a ledger in the same process through the wire encoding.

    Requests and replies are round-tripped through their camelCase dict form so
    the schema boundary is exercised exactly as a remote call would. Storage
    failures on the ledger side surface as LedgerTransportError.
    """

    def __init__(self, ledger: MoveEconomyLedger) -> None:
        self._ledger = ledger

    def apply_move(self, request: ApplyMoveRequest) -> LedgerReply:
        try:
            raw = self._ledger.handle_request(request.to_wire())
        except OSError as exc:
            raise LedgerTransportError(f"ledger storage failure: {exc}") from exc
        try:
            return parse_reply(raw)
        except ValidationError as exc:
            raise LedgerTransportError(f"malformed ledger reply: {exc}") from exc
