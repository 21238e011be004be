"""
Exceptions raised by the canonical feature model.

Two families:
    - ConstructionError: the model (or a relationship) refused to be built
    - FeatureLookupError: a query referenced something that is not there

Both are recoverable at the call site. A failing call never leaves a
partially stored feature or relationship behind.
"""


class FeatureModelError(Exception):
    """Base class for every error raised by cfm."""
    pass


class ConstructionError(FeatureModelError, ValueError):
    """Raised when a feature, clause or relationship violates an invariant."""
    pass


class FeatureLookupError(FeatureModelError, LookupError):
    """Raised when a feature cannot be found by index or id."""
    pass


__all__ = ["FeatureModelError", "ConstructionError", "FeatureLookupError"]
