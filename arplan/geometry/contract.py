from __future__ import annotations

"""
Geometry Contract

Single source of truth for geometric thresholds, tolerances, and defaults used
throughout the engine. All modules should import from here instead of hardcoding.
"""

# Lengths in metres unless noted

# Walls
DEFAULT_WALL_THICKNESS = 0.15  # m
MIN_AXIS_LENGTH = 0.001  # m, projected horizontal axis below this is degenerate

# Corner joining
CORNER_SNAP_THRESHOLD = 0.5  # m
PROXIMITY_JOIN_THRESHOLD = 0.3  # m
JOIN_EPSILON = 0.001  # m, endpoints closer than this are already joined

# Floor plan bounds
BOUNDS_PADDING = 0.5  # m

# Corner detection between wall anchors
CORNER_MIN_ANGLE_DEG = 60.0
CORNER_MAX_ANGLE_DEG = 120.0
CORNER_MAX_CENTER_DISTANCE = 4.0  # m
PERPENDICULAR_MAX_DOT = 0.3  # |n1 . n2| below this counts as perpendicular

# Depth sensor
MIN_SENSOR_DEPTH = 0.1  # m
MAX_SENSOR_DEPTH = 5.0  # m

# Measurement
ESTIMATED_METERS_PER_PIXEL = 0.01
MIN_REFERENCE_PIXEL_LENGTH = 1.0  # px
FEET_PER_METER = 3.28084

# Room summary
DEFAULT_ROOM_HEIGHT = 2.5  # m

# Perspective correction
PERSPECTIVE_CACHE_CAPACITY = 20
QUAD_KEY_DECIMALS = 6
DEFAULT_FRAME_SIZE = 0.15  # fraction of the host plane, normalized
