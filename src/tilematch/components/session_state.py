from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class SessionState:
    """Per-session flags shared across systems.

    swap_in_flight: a swap has been accepted and its ledger round trip is not settled yet.
    needs_resync: an abandoned request may have been committed; reload before trusting the view.
    closed: the ledger no longer knows the user; the session accepts no further swaps.
    """

    user_id: str
    selected: Optional[int] = None
    swap_in_flight: bool = False
    needs_resync: bool = False
    closed: bool = False
