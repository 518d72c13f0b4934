from __future__ import annotations


class InvalidInputError(TypeError):
    """Raised when `points` or `polygons` is not a collection of features at all.

    Per-feature problems (bad coordinates, wrong nesting) never raise; those
    features are skipped.
    """
