"""Constants."""

# Grid geometry
DEFAULT_GRID_WIDTH = 500
DEFAULT_GRID_HEIGHT = 500
DEFAULT_CELL_SIZE = 20

# Agent
DEFAULT_AGENT_SIZE = 20
DEFAULT_START_POSITION = (0, 0)

# Tick driver: one tick per rendered frame at 60 Hz
DEFAULT_FRAME_TIME = 1 / 60
DEFAULT_TICKS = 5000
