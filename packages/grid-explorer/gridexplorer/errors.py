"""Define error messages for the Grid Explorer package."""

ERROR_CELL_SIZE_DIVISOR = "Cell size {cell_size} must divide both grid width {width} and height {height}."
ERROR_POSITION_OUT_OF_GRID = (
    "Position ({x}, {y}) lies outside the {width}x{height} grid. "
    "Callers must validate bounds before recording visits."
)
ERROR_NEGATIVE_DELAY = "Scheduled delay must be non-negative. Provided delay: {delay}."
ERROR_NON_POSITIVE_PERIOD = "Recurring period must be positive. Provided period: {period}."
ERROR_NEGATIVE_ADVANCE = "Clock can only move forward. Provided step: {dt}."
