import random
from datetime import datetime
from typing import Optional

from esper import World

from tilematch.components.economy_view import EconomyView
from tilematch.components.notifications import NotificationQueue
from tilematch.components.session_state import SessionState


def create_world(
    *,
    user_id: str,
    score: int = 0,
    moves_remaining: int = 0,
    reset_at: Optional[datetime] = None,
    rng: random.Random | None = None,
) -> World:
    """Create a session world seeded with the ledger's (score, moves, reset) snapshot.

    The board itself is created by BoardSystem; this only registers the
    singleton session and notification entities.
    """
    world = World()
    setattr(world, "random", rng or random.Random())
    world.create_entity(
        SessionState(user_id=user_id),
        EconomyView(score=score, moves_remaining=moves_remaining, reset_at=reset_at),
    )
    world.create_entity(NotificationQueue())
    return world
