"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the application's framework, such as rendering
properties, default window sizes, or physics defaults used when the
configuration file does not override them.
"""

# Visualization settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a resizable window (WINDOW_WIDTH x WINDOW_HEIGHT).
FULLSCREEN = False
WINDOW_WIDTH = 1280
WINDOW_HEIGHT = 720
FPS = 60
BACKGROUND_COLOR = (24, 24, 24) # Dark Gray
BUBBLE_LINE_WIDTH = 2

# --- Bubble Highlight ---
# The highlight is a small white ellipse in the upper-left quadrant of the
# bubble. Its radii are fractions of the bubble radius.
HIGHLIGHT_RADIUS_X_RATIO = 1 / 8
HIGHLIGHT_RADIUS_Y_RATIO = 1 / 4
# Offset of the highlight centre from the bubble centre, as a fraction of radius.
HIGHLIGHT_OFFSET_RATIO = 1 / 2
HIGHLIGHT_ANGLE_DEGREES = 45
HIGHLIGHT_COLOR = (255, 255, 255)

# --- Physics defaults ---
DEFAULT_BUBBLE_RADIUS = 100.0
# Extra off-screen distance a bubble travels before its velocity reflects.
BOUNDARY_MARGIN = 200.0
# Fraction of normal velocity kept through a collision.
RESTITUTION = 0.8

# --- Spawning defaults ---
BURST_SIZE = 3
SPAWN_DELAY_MIN_MS = 5000
SPAWN_DELAY_MAX_MS = 10000
# 0 means the population grows without bound.
MAX_PARTICLES = 0

# Edge identifiers used when choosing a spawn position.
EDGE_TOP = 0
EDGE_RIGHT = 1
EDGE_BOTTOM = 2
EDGE_LEFT = 3
