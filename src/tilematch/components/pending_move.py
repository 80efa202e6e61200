from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class PendingMove:
    """A tentatively applied economy delta awaiting the ledger's verdict.

    Compensation always subtracts exactly these values, never values re-read from
    the current view.
    """

    request_id: int
    points_earned: int
    moves_used: int
