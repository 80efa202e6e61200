import logging
import random

from esper import World

from tilematch.constants import COLORS, MAX_CASCADE_DEPTH, MOVES_PER_SWAP, POINTS_PER_TILE
from tilematch.events.bus import (
    EventBus,
    EVENT_CASCADE_ABORTED,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STEP,
    EVENT_MATCH_FOUND,
    EVENT_MOVE_RESOLVED,
    EVENT_TILE_SWAP_FINALIZE,
)
from tilematch.systems.board_ops import CascadeDepthExceeded, CascadeStep, resolve_cascade
from tilematch.systems.session_utils import get_grid, get_session_state

logger = logging.getLogger(__name__)


class MatchResolutionSystem:
    """Resolves the cascade that follows an accepted swap.

    Emits one EVENT_MATCH_FOUND / EVENT_CASCADE_STEP pair per iteration, then
    EVENT_CASCADE_COMPLETE with the accumulated points and finally
    EVENT_MOVE_RESOLVED charging one move for the whole chain.

    A chain that hits the depth ceiling charges nothing: the swap lock is
    released and EVENT_CASCADE_ABORTED asks the board to regenerate.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        points_per_tile: int = POINTS_PER_TILE,
        max_depth: int = MAX_CASCADE_DEPTH,
    ):
        self.world = world
        self.event_bus = event_bus
        self.points_per_tile = points_per_tile
        self.max_depth = max_depth
        self.event_bus.subscribe(EVENT_TILE_SWAP_FINALIZE, self.on_swap_finalize)

    def on_swap_finalize(self, sender, **kwargs):
        matches = kwargs.get('matches') or []
        if not matches:
            return
        rng = getattr(self.world, "random", None)
        if not isinstance(rng, random.Random):
            rng = random.Random()
        try:
            result = resolve_cascade(
                get_grid(self.world),
                set(matches),
                rng,
                colors=COLORS,
                points_per_tile=self.points_per_tile,
                max_depth=self.max_depth,
                on_step=self._emit_step,
            )
        except CascadeDepthExceeded as exc:
            logger.error("Cascade aborted at depth %d (%d points discarded)", exc.depth, exc.points)
            get_session_state(self.world).swap_in_flight = False
            self.event_bus.emit(EVENT_CASCADE_ABORTED, depth=exc.depth, points=exc.points)
            return
        self.event_bus.emit(EVENT_CASCADE_COMPLETE, depth=result.depth, points=result.points)
        self.event_bus.emit(EVENT_MOVE_RESOLVED, points_earned=result.points, moves_used=MOVES_PER_SWAP)

    def _emit_step(self, step: CascadeStep) -> None:
        indices = list(step.indices)
        self.event_bus.emit(EVENT_MATCH_FOUND, indices=indices, size=len(indices), depth=step.depth)
        self.event_bus.emit(EVENT_CASCADE_STEP, depth=step.depth, indices=indices, points=step.points)
