# miqat/core/providers.py
"""
Platform capability boundary (device location, magnetic declination).

The registry is written once at start-up (see miqat.main.create_app) and read
thereafter; there is no locking. The Qibla engine does not read it: the app
passes `providers.magnetic_provider()` into QiblaEngine explicitly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Protocol, runtime_checkable

from miqat.core.errors import ProviderError

log = logging.getLogger(__name__)

__all__ = [
    "Position",
    "LocationProvider",
    "MagneticProvider",
    "ProviderRegistry",
    "FixedDeclinationProvider",
    "MAGNETIC_DECLINATION",
    "providers",
]

# Approximate declination (deg, east positive), drifts ~0.1°/year. 2024 values.
MAGNETIC_DECLINATION: Mapping[str, float] = MappingProxyType({
    "Istanbul": 5.2, "Ankara": 5.0,
    "Mecca": 2.5, "Medina": 3.0, "Riyadh": 2.8, "Dubai": 2.0, "Cairo": 3.5, "Tehran": 4.0,
    "Karachi": 0.5, "Delhi": -0.5, "Dhaka": -0.8,
    "Jakarta": 0.8, "Kuala Lumpur": -0.2,
    "London": -0.5, "Paris": -0.1, "Berlin": 3.0,
    "New York": -13.0, "Los Angeles": 11.5, "Toronto": -10.5,
})


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    accuracy: float      # meters
    timestamp: float     # epoch seconds


@runtime_checkable
class LocationProvider(Protocol):
    async def get_current_position(self) -> Position: ...


@runtime_checkable
class MagneticProvider(Protocol):
    async def get_declination(self, latitude: float, longitude: float, altitude: float = 0.0) -> float: ...


class ProviderRegistry:
    def __init__(self) -> None:
        self._location: Optional[LocationProvider] = None
        self._magnetic: Optional[MagneticProvider] = None

    def register_location_provider(self, provider: LocationProvider) -> None:
        if provider is None or not callable(getattr(provider, "get_current_position", None)):
            raise ProviderError("Invalid LocationProvider: must implement get_current_position")
        self._location = provider

    def register_magnetic_provider(self, provider: MagneticProvider) -> None:
        if provider is None or not callable(getattr(provider, "get_declination", None)):
            raise ProviderError("Invalid MagneticProvider: must implement get_declination")
        self._magnetic = provider

    def location_provider(self) -> LocationProvider:
        if self._location is None:
            raise ProviderError("No LocationProvider registered; inject one at startup")
        return self._location

    def magnetic_provider(self) -> Optional[MagneticProvider]:
        if self._magnetic is None:
            log.warning("No MagneticProvider registered; Qibla bearings will be true-north only")
        return self._magnetic

    def clear(self) -> None:
        self._location = None
        self._magnetic = None


class FixedDeclinationProvider:
    """Returns one configured declination for every location."""

    def __init__(self, declination: float):
        self.declination = float(declination)

    @classmethod
    def for_city(cls, city: str) -> "FixedDeclinationProvider":
        try:
            return cls(MAGNETIC_DECLINATION[city])
        except KeyError as e:
            raise ProviderError(f"no declination on file for '{city}'") from e

    async def get_declination(self, latitude: float, longitude: float, altitude: float = 0.0) -> float:
        return self.declination


providers = ProviderRegistry()
