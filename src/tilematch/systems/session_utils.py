from typing import Optional, Tuple

from esper import World

from tilematch.components.economy_view import EconomyView
from tilematch.components.grid import Grid
from tilematch.components.notifications import NotificationQueue
from tilematch.components.pending_move import PendingMove
from tilematch.components.session_state import SessionState


def get_session_entity(world: World) -> int:
    for entity, _ in world.get_component(SessionState):
        return entity
    raise RuntimeError("SessionState not found; build the world with create_world()")


def get_session_state(world: World) -> SessionState:
    return world.component_for_entity(get_session_entity(world), SessionState)


def get_economy_view(world: World) -> EconomyView:
    return world.component_for_entity(get_session_entity(world), EconomyView)


def get_grid(world: World) -> Grid:
    for _, grid in world.get_component(Grid):
        return grid
    raise RuntimeError("Grid not found; BoardSystem has not created the board")


def get_pending_move(world: World) -> Optional[Tuple[int, PendingMove]]:
    """Return (entity, PendingMove) for the in-flight ledger request, if any."""
    for entity, pending in world.get_component(PendingMove):
        return entity, pending
    return None


def get_or_create_notifications(world: World) -> NotificationQueue:
    existing = list(world.get_component(NotificationQueue))
    if existing:
        return existing[0][1]
    world.create_entity(NotificationQueue())
    return list(world.get_component(NotificationQueue))[0][1]
