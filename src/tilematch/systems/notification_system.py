from esper import World

from tilematch.constants import NOTIFICATION_LIFETIME
from tilematch.events.bus import (
    EventBus,
    EVENT_BOARD_RESET,
    EVENT_CASCADE_ABORTED,
    EVENT_CASCADE_STEP,
    EVENT_ECONOMY_USER_MISSING,
    EVENT_INPUT_BLOCKED,
    EVENT_MOVE_FAILED,
    EVENT_MOVE_REJECTED,
    EVENT_NOTIFICATION,
    EVENT_TICK,
    EVENT_TILE_SWAP_INVALID,
)
from tilematch.systems.session_utils import get_economy_view, get_or_create_notifications
from tilematch.utils.clock import Clock, utc_now
from tilematch.utils.countdown import format_countdown

SWAP_MESSAGES = {
    'no_match': ('error', 'Wrong Move!'),
    'not_adjacent': ('error', 'Tiles must be next to each other'),
    'out_of_range': ('error', 'No such tile'),
    'busy': ('info', 'Hold on, the last move is still syncing'),
    'session_closed': ('error', 'Session expired, please sign in again'),
}


class NotificationSystem:
    """Turns rejections and rewards into user-visible notifications.

    Every rejection reason has its own wording; a ledger failure never reads
    like a wrong move. Notifications expire on EVENT_TICK.
    """

    def __init__(self, world: World, event_bus: EventBus, *, clock: Clock | None = None,
                 lifetime: float = NOTIFICATION_LIFETIME):
        self.world = world
        self.event_bus = event_bus
        self._clock = clock or utc_now
        self.lifetime = lifetime
        self.event_bus.subscribe(EVENT_TILE_SWAP_INVALID, self.on_swap_invalid)
        self.event_bus.subscribe(EVENT_INPUT_BLOCKED, self.on_swap_invalid)
        self.event_bus.subscribe(EVENT_CASCADE_STEP, self.on_cascade_step)
        self.event_bus.subscribe(EVENT_CASCADE_ABORTED, self.on_cascade_aborted)
        self.event_bus.subscribe(EVENT_MOVE_REJECTED, self.on_move_rejected)
        self.event_bus.subscribe(EVENT_MOVE_FAILED, self.on_move_failed)
        self.event_bus.subscribe(EVENT_ECONOMY_USER_MISSING, self.on_user_missing)
        self.event_bus.subscribe(EVENT_BOARD_RESET, self.on_board_reset)
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)

    def notify(self, kind: str, message: str) -> None:
        get_or_create_notifications(self.world).push(kind, message, self.lifetime)
        self.event_bus.emit(EVENT_NOTIFICATION, kind=kind, message=message)

    def on_swap_invalid(self, sender, **kwargs):
        reason = kwargs.get('reason')
        if reason == 'out_of_moves':
            self.notify('info', self._out_of_moves_message())
            return
        kind, message = SWAP_MESSAGES.get(reason, ('error', 'Move not allowed'))
        self.notify(kind, message)

    def on_cascade_step(self, sender, **kwargs):
        points = kwargs.get('points', 0)
        if points > 0:
            self.notify('points', f"+{points} Points!")

    def on_cascade_aborted(self, sender, **kwargs):
        self.notify('error', "Board got stuck, reshuffling. No move was charged")

    def on_move_rejected(self, sender, **kwargs):
        available = kwargs.get('available_moves', 0)
        reset_at = kwargs.get('reset_at')
        message = f"Not enough moves ({available} left)"
        if reset_at is not None:
            message += f", reset in {format_countdown(reset_at, self._clock())}"
        self.notify('info', message)

    def on_move_failed(self, sender, **kwargs):
        self.notify('error', "Couldn't save your move, score and moves restored")

    def on_user_missing(self, sender, **kwargs):
        self.notify('error', SWAP_MESSAGES['session_closed'][1])

    def on_board_reset(self, sender, **kwargs):
        if kwargs.get('reason') == 'no_moves':
            self.notify('info', 'No moves left on the board, shuffling')

    def on_tick(self, sender, **kwargs):
        dt = float(kwargs.get('dt', 0.0))
        get_or_create_notifications(self.world).advance(dt)

    def _out_of_moves_message(self) -> str:
        reset_at = get_economy_view(self.world).reset_at
        if reset_at is None:
            return 'No moves left!'
        return f"Moves reset in {format_countdown(reset_at, self._clock())}"
