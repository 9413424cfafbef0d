import math

from ..data.base import ProximityLabel

NEAR_MAX_M = 50.0
MODERATE_MAX_M = 600.0

def classify(distance_m: float | None) -> ProximityLabel:
    """Walking-distance bucket; each boundary belongs to the closer tier."""
    if distance_m is None:
        return ProximityLabel.UNKNOWN
    try:
        d = float(distance_m)
    except (TypeError, ValueError):
        return ProximityLabel.UNKNOWN
    if not math.isfinite(d):
        return ProximityLabel.UNKNOWN
    if d <= NEAR_MAX_M:
        return ProximityLabel.NEAR
    if d <= MODERATE_MAX_M:
        return ProximityLabel.MODERATE
    return ProximityLabel.FAR
