import math

import pytest

from parkeasy.data.base import ProximityLabel
from parkeasy.geo.proximity import classify


@pytest.mark.parametrize(
    "distance, label",
    [
        (0, ProximityLabel.NEAR),
        (50, ProximityLabel.NEAR),
        (50.0001, ProximityLabel.MODERATE),
        (600, ProximityLabel.MODERATE),
        (600.0001, ProximityLabel.FAR),
        (12_000, ProximityLabel.FAR),
        (math.nan, ProximityLabel.UNKNOWN),
        (math.inf, ProximityLabel.UNKNOWN),
        (None, ProximityLabel.UNKNOWN),
    ],
)
def test_classify_thresholds(distance, label):
    assert classify(distance) is label


def test_labels_carry_display_colors():
    assert ProximityLabel.NEAR.color == "green"
    assert ProximityLabel.MODERATE.color == "yellow"
    assert ProximityLabel.FAR.color == "red"
    assert ProximityLabel.UNKNOWN.color == "grey"
