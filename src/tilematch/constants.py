from datetime import timedelta

GRID_ROWS = 8
GRID_COLS = 8

# Six tile colors; order is stable so seeded boards are reproducible.
COLORS = ('red', 'blue', 'green', 'yellow', 'purple', 'orange')

MIN_RUN = 3
POINTS_PER_TILE = 5
MOVES_PER_SWAP = 1

# Move economy
MAX_MOVES = 30
REFILL_WINDOW = timedelta(hours=1)

# Ceiling on match -> refill -> rematch iterations for a single swap.
MAX_CASCADE_DEPTH = 1000
# Log a warning every N rejected candidate boards.
BOARD_ATTEMPT_WARNING = 1000

# Seconds a notification stays in the queue.
NOTIFICATION_LIFETIME = 1.5
