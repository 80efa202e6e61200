from __future__ import annotations

import argparse
import logging
import random
from typing import List, Optional

from tilematch.components.grid import Grid
from tilematch.events.bus import EVENT_NOTIFICATION
from tilematch.ledger.ledger import MoveEconomyLedger
from tilematch.ledger.store import InMemoryEconomyStore, JsonEconomyStore
from tilematch.session import GameSession
from tilematch.systems.board_ops import find_valid_swaps


def render_grid(grid: Grid) -> str:
    rows = []
    for row in range(grid.rows):
        cells = grid.cells[row * grid.cols:(row + 1) * grid.cols]
        rows.append(' '.join(color[0].upper() for color in cells))
    return '\n'.join(rows)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description='Play random legal swaps against a move-economy ledger')
    parser.add_argument('--user', default='demo', help='User id to play as')
    parser.add_argument('--moves', type=int, default=5, help='Number of swaps to attempt')
    parser.add_argument('--seed', type=int, default=None, help='RNG seed for board and refills')
    parser.add_argument('--store', default=None, help='JSON file for the ledger (in-memory if omitted)')
    parser.add_argument('--show-board', action='store_true', help='Print the board after every swap')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    store = JsonEconomyStore(args.store) if args.store else InMemoryEconomyStore()
    ledger = MoveEconomyLedger(store)
    rng = random.Random(args.seed)
    session = GameSession.start(ledger, args.user, rng=rng)
    session.event_bus.subscribe(
        EVENT_NOTIFICATION, lambda sender, **kw: print(f"  [{kw['kind']}] {kw['message']}")
    )

    print(f"User {args.user}: score={session.economy.score} moves={session.economy.moves_remaining}")
    if args.show_board:
        print(render_grid(session.grid))
    for turn in range(1, args.moves + 1):
        swaps = find_valid_swaps(session.grid)
        if not swaps:
            print('No legal swaps available')
            break
        src, dst = rng.choice(swaps)
        print(f"Move {turn}: swap {src} <-> {dst}")
        session.swap(src, dst)
        session.tick(0.0)
        economy = session.economy
        print(f"  score={economy.score} moves={economy.moves_remaining} reset_at={economy.reset_at}")
        if args.show_board:
            print(render_grid(session.grid))

    print('Leaderboard:')
    for rank, (user_id, score) in enumerate(ledger.leaderboard(), start=1):
        print(f"  {rank}. {user_id}: {score}")


if __name__ == '__main__':
    main()
