from __future__ import annotations

import random
from concurrent.futures import Future
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from tilematch.components.grid import Grid
from tilematch.constants import COLORS
from tilematch.ledger.economy import PlayerEconomy
from tilematch.ledger.ledger import MoveEconomyLedger
from tilematch.ledger.schema import ApplyMoveRequest
from tilematch.ledger.store import InMemoryEconomyStore
from tilematch.ledger.transport import InProcessTransport
from tilematch.session import GameSession

EPOCH = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def playable_cells(overrides: Optional[Dict[int, str]] = None) -> List[str]:
    """8x8 cells without any run, plus one legal move in the bottom-right corner.

    Cell (r, c) is COLORS[(2r + c) % 6]; index 62 is recoloured blue so that
    swapping 55 and 63 lines up three blues on the last row.
    """
    cells = [COLORS[(2 * r + c) % 6] for r in range(8) for c in range(8)]
    cells[62] = 'blue'
    for index, color in (overrides or {}).items():
        cells[index] = color
    return cells


def make_grid(overrides: Optional[Dict[int, str]] = None) -> Grid:
    return Grid(cells=playable_cells(overrides))


def stalemate_cells(colors=('red', 'blue', 'green')) -> List[str]:
    """Diagonal three-color pattern: no runs and no swap that creates one."""
    return [colors[(r + c) % 3] for r in range(8) for c in range(8)]


# Row 0 holds red, red, green; cell 10 (row 1, col 2) is red. Swapping 2 and 10
# completes exactly one horizontal run: indices 0, 1, 2.
THREE_RUN_OVERRIDES = {1: 'red', 10: 'red'}
THREE_RUN_SWAP = (2, 10)
# Refill colours for cells 0, 1, 2 that leave the board without matches.
QUIET_REFILL = ['yellow', 'orange', 'blue']
# Refill colours that rebuild a three-run on row 0 (cell 3 stays yellow).
ECHO_REFILL = ['purple', 'purple', 'purple']


class ScriptedRandom(random.Random):
    """Random whose choice() replays scripted picks before falling back to the seed."""

    def __init__(self, picks: Iterable[str] = (), seed: int = 0):
        super().__init__(seed)
        self.picks = list(picks)

    def choice(self, seq):
        if self.picks:
            return self.picks.pop(0)
        return super().choice(seq)


class FakeClock:
    def __init__(self, start: datetime = EPOCH) -> None:
        self.value = start

    def advance(self, **delta) -> None:
        self.value += timedelta(**delta)

    def __call__(self) -> datetime:
        return self.value


class ManualExecutor:
    """Executor stand-in that only runs submitted calls when told to."""

    def __init__(self) -> None:
        self.calls: list = []

    def submit(self, fn, *args, **kwargs) -> Future:
        future: Future = Future()
        self.calls.append((future, fn, args, kwargs))
        return future

    def run_next(self) -> None:
        future, fn, args, kwargs = self.calls.pop(0)
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)


class RecordingTransport:
    """Wraps a transport and records every request it carries."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.requests: List[ApplyMoveRequest] = []

    def apply_move(self, request: ApplyMoveRequest):
        self.requests.append(request)
        return self.inner.apply_move(request)


def make_ledger(clock: Optional[FakeClock] = None, **records: PlayerEconomy) -> MoveEconomyLedger:
    return MoveEconomyLedger(InMemoryEconomyStore(records), clock=clock or FakeClock())


def make_session(
    ledger: MoveEconomyLedger,
    user_id: str = 'alice',
    *,
    transport=None,
    cells: Optional[List[str]] = None,
    clock: Optional[FakeClock] = None,
    executor=None,
    seed: int = 7,
) -> GameSession:
    """Open a session for a registered user and install a known board."""
    ledger.register_user(user_id)
    session = GameSession(
        user_id,
        ledger.snapshot(user_id),
        transport or InProcessTransport(ledger),
        rng=random.Random(seed),
        clock=clock,
        executor=executor,
    )
    if cells is not None:
        session.grid.cells[:] = cells
    return session
