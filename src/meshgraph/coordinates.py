"""Conversions between Cartesian and spherical (geographic) coordinates.

Spherical coordinates are ``(r, lat, lon)`` in degrees, where

* ``lat`` is in ``[-90, 90]``
* ``lon`` is in ``(-180, 180]``
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


class DomainError(ValueError):
    """Argument outside the domain of a geographic quantity."""

    def __init__(self, value: float, message: str) -> None:
        super().__init__(f"{message} (got {value!r})")
        self.value = value


def validate_latitude(lat: float) -> float:
    """Return *lat* unchanged, or raise :class:`DomainError` if outside ``[-90, 90]``."""
    if lat < -90 or lat > 90:
        raise DomainError(lat, "Latitude has to be in range [-90, 90]")
    return lat


def normalize_longitude(lon: float) -> float:
    """Move *lon* (degrees) into the half-open range ``(-180, 180]``."""
    return -(((-lon + 180.0) % 360.0) - 180.0)


def cartesian_to_spherical(coords: Sequence[float]) -> np.ndarray:
    """Return ``[r, lat, lon]`` for Cartesian point ``(x, y, z)``.

    The origin maps to ``[0, 0, 0]``.
    """
    x, y, z = (float(c) for c in coords[:3])
    r = math.sqrt(x * x + y * y + z * z)
    if r != 0:
        cos_theta = max(-1.0, min(1.0, z / r))
        lat = 90.0 - math.degrees(math.acos(cos_theta))
    else:
        lat = 0.0
    lon = normalize_longitude(math.degrees(math.atan2(y, x)))
    return np.array([r, lat, lon], dtype=float)


def spherical_to_cartesian(coords: Sequence[float]) -> np.ndarray:
    """Return ``[x, y, z]`` for spherical point ``(r, lat, lon)`` in degrees."""
    r, lat, lon = (float(c) for c in coords[:3])
    lat_rad = math.radians(lat)
    lon_rad = math.radians(lon)
    return r * np.array([
        math.cos(lon_rad) * math.cos(lat_rad),
        math.sin(lon_rad) * math.cos(lat_rad),
        math.sin(lat_rad),
    ])
