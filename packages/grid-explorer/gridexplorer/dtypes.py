"""Core type definitions for Grid Explorer.

Pixel positions are grid-aligned integer coordinates of a top-left corner.
Cell keys are the integer column and row of the cell containing a position.
"""

# =============================================================================
# Position Types
# =============================================================================

# Pixel-equivalent position (top-left corner, multiple of the cell size)
PixelPosition = tuple[int, int]

# Discretized cell coordinates (column, row)
CellKey = tuple[int, int]

# =============================================================================
# Visitation Types
# =============================================================================

# Visit counts per cell; grows as new cells are visited and is never pruned
VisitationMap = dict[CellKey, int]
