from blinker import Signal
from typing import Dict

class EventBus:
    """Named blinker signals shared by the systems of one session.

    A handler stays connected until unsubscribe() is called for it.
    """
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                                # payload: dt=float


# ============================================================================
# INPUT & INTERACTION
# ============================================================================
EVENT_TILE_CLICK = "tile_click"                    # payload: index=int
EVENT_TILE_SELECTED = "tile_selected"              # payload: index=int
EVENT_TILE_DESELECTED = "tile_deselected"          # payload: index=int, reason=str
EVENT_INPUT_BLOCKED = "input_blocked"              # payload: index=int, reason=str


# ============================================================================
# TILE & BOARD MECHANICS
# ============================================================================
EVENT_TILE_SWAP_REQUEST = "tile_swap_request"      # payload: src=int, dst=int
EVENT_TILE_SWAP_INVALID = "tile_swap_invalid"      # payload: src=int, dst=int, reason=str
EVENT_TILE_SWAP_FINALIZE = "tile_swap_finalize"    # payload: src=int, dst=int, matches=list[int]
EVENT_MATCH_FOUND = "match_found"                  # payload: indices=list[int], size=int, depth=int
EVENT_CASCADE_STEP = "cascade_step"                # payload: depth=int, indices=list[int], points=int
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: depth=int, points=int
EVENT_CASCADE_ABORTED = "cascade_aborted"          # payload: depth=int, points=int
EVENT_BOARD_RESET = "board_reset"                  # payload: reason=str
EVENT_MOVE_RESOLVED = "move_resolved"              # payload: points_earned=int, moves_used=int


# ============================================================================
# LEDGER TRAFFIC
# ============================================================================
EVENT_LEDGER_REQUEST = "ledger_request"            # payload: request_id=int, request=ApplyMoveRequest
EVENT_LEDGER_REPLY = "ledger_reply"                # payload: request_id=int, reply=LedgerReply
EVENT_LEDGER_FAILED = "ledger_failed"              # payload: request_id=int, error=Exception


# ============================================================================
# ECONOMY
# ============================================================================
EVENT_ECONOMY_CHANGED = "economy_changed"          # payload: score=int, moves_remaining=int, reset_at=datetime|None, source=str
EVENT_MOVE_REJECTED = "move_rejected"              # payload: request_id=int, available_moves=int, reset_at=datetime|None
EVENT_MOVE_FAILED = "move_failed"                  # payload: request_id=int, reason=str, message=str
EVENT_ECONOMY_USER_MISSING = "economy_user_missing"  # payload: user_id=str
EVENT_MOVES_REFILLED = "moves_refilled"            # payload: moves_remaining=int, local=bool
EVENT_SWAP_SETTLED = "swap_settled"                # payload: request_id=int, outcome=str


# ============================================================================
# NOTIFICATIONS
# ============================================================================
EVENT_NOTIFICATION = "notification"                # payload: kind=str, message=str
