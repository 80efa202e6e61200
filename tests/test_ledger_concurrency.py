import threading
import time
from concurrent.futures import ThreadPoolExecutor

from tilematch.ledger.economy import PlayerEconomy
from tilematch.ledger.ledger import MoveEconomyLedger
from tilematch.ledger.schema import MoveApplied, MoveRejected
from tilematch.ledger.store import InMemoryEconomyStore
from tests.helpers import FakeClock


class SlowStore(InMemoryEconomyStore):
    """Widens the read-modify-write window so unsynchronised callers would overlap."""

    def get(self, user_id):
        record = super().get(user_id)
        time.sleep(0.01)
        return record


def test_racing_for_the_last_move_admits_exactly_one():
    ledger = MoveEconomyLedger(SlowStore({'alice': PlayerEconomy(moves_remaining=1)}), clock=FakeClock())
    workers = 8
    barrier = threading.Barrier(workers)

    def attempt():
        barrier.wait()
        return ledger.apply_move('alice', 10, 1)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        replies = list(pool.map(lambda _: attempt(), range(workers)))

    applied = [r for r in replies if isinstance(r, MoveApplied)]
    rejected = [r for r in replies if isinstance(r, MoveRejected)]
    assert len(applied) == 1
    assert len(rejected) == workers - 1
    assert all(r.available_moves == 0 for r in rejected)
    stored = ledger.store.get('alice')
    assert (stored.score, stored.moves_remaining) == (10, 0)


def test_many_moves_never_overdraw_the_budget():
    ledger = MoveEconomyLedger(SlowStore({'alice': PlayerEconomy(moves_remaining=5)}), clock=FakeClock())
    with ThreadPoolExecutor(max_workers=6) as pool:
        replies = list(pool.map(lambda _: ledger.apply_move('alice', 1, 1), range(12)))
    assert sum(isinstance(r, MoveApplied) for r in replies) == 5
    stored = ledger.store.get('alice')
    assert (stored.score, stored.moves_remaining) == (5, 0)


def test_different_users_do_not_share_a_lock():
    ledger = MoveEconomyLedger(clock=FakeClock())
    assert ledger._lock_for('alice') is ledger._lock_for('alice')
    assert ledger._lock_for('alice') is not ledger._lock_for('bob')


def test_unknown_ids_do_not_grow_the_lock_map():
    ledger = MoveEconomyLedger(clock=FakeClock())
    for n in range(50):
        ledger.apply_move(f'ghost{n}', 0, 1)
    assert ledger._locks == {}
    ledger.register_user('alice')
    ledger.apply_move('alice', 5, 1)
    assert list(ledger._locks) == ['alice']
