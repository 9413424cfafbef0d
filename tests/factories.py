"""Builders for test data."""
from datetime import datetime

# Central Melbourne-ish stops
STOP_FEATURES = [
    {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [144.9631, -37.8136]},
        "properties": {"stop_id": "1001", "stop_name": "Swanston St/Collins St", "mode": "tram"},
    },
    {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [144.9525, -37.8183]},
        "properties": {"stop_id": "1002", "name": "Southern Cross Station", "route_type": "train"},
    },
    {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [144.9800, -37.8000]},
        "properties": {},
    },
]


def obs(address="A", postcode="3000", suburb="Melbourne", day="Monday",
        ts=datetime(2024, 5, 6, 10, 0), status="Unoccupied",
        lat=-37.8136, lon=144.9631) -> dict:
    """One observation row keyed the way the table expects."""
    return {
        "address": address,
        "postcode": postcode,
        "suburb": suburb,
        "lat": lat,
        "lon": lon,
        "day_of_week": day,
        "status_timestamp": ts,
        "status_description": status,
    }
