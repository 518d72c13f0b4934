from floodreach.engine.distance import compute_distance_lines, nearest_floodplain
from floodreach.engine.errors import InvalidInputError

__all__ = ["InvalidInputError", "compute_distance_lines", "nearest_floodplain"]
