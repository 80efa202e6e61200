from tilematch.events.bus import EVENT_BOARD_RESET, EVENT_MOVE_RESOLVED
from tilematch.systems.board_ops import find_matches, find_valid_swaps
from tests.helpers import ScriptedRandom, make_ledger, make_session, stalemate_cells


def _near_stalemate_cells():
    """Diagonal stalemate pattern with row 0 prepared so that swapping 2 and 10 matches.

    Refilling indices 0, 1, 2 with red, blue, green turns the board back into
    the pure pattern, which has no legal move at all.
    """
    cells = stalemate_cells()
    cells[0] = 'yellow'
    cells[1] = 'yellow'
    cells[2] = 'red'
    cells[10] = 'yellow'
    return cells


def test_stalemate_after_cascade_triggers_board_reset():
    ledger = make_ledger()
    session = make_session(ledger, cells=_near_stalemate_cells())
    assert not find_matches(session.grid), "Setup should not contain initial matches"

    session.world.random = ScriptedRandom(['red', 'blue', 'green'], seed=1234)
    resets, resolved = [], []
    session.event_bus.subscribe(EVENT_BOARD_RESET, lambda s, **k: resets.append(k['reason']))
    session.event_bus.subscribe(EVENT_MOVE_RESOLVED, lambda s, **k: resolved.append(k['points_earned']))

    session.swap(2, 10)

    assert resolved == [15]
    assert resets == ['no_moves']
    assert session.grid.cells != stalemate_cells()
    assert not find_matches(session.grid), "New board should start without matches"
    assert find_valid_swaps(session.grid), "New board should provide at least one valid move"
    assert 'No moves left on the board, shuffling' in session.notifications.messages()

