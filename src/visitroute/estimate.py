from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .models import TripEstimate

CAR_TIME_FIXED_RATE = "fixed_rate"
CAR_TIME_PROVIDER = "provider"
CAR_TIME_MODELS = (CAR_TIME_FIXED_RATE, CAR_TIME_PROVIDER)


@dataclass(frozen=True)
class EstimateSettings:
    car_seconds_per_km: float = 160.0
    moto_factor: float = 0.85
    walk_minutes_per_km: float = 15.0
    fare_per_km: float = 6.0
    fare_minimum: int = 6
    fare_min_factor: float = 0.9
    fare_max_factor: float = 1.2
    car_time_model: str = CAR_TIME_FIXED_RATE


def round_half_up(value: float) -> int:
    """Round half away from zero (``round()`` would round half to even)."""
    if value < 0:
        return -round_half_up(-value)
    return int(math.floor(_stable(value) + 0.5))


def _stable(value: float) -> float:
    # Drop float noise such as 71.99999999999999 before floor/ceil.
    return round(value, 9)


class TripEstimator:
    def __init__(self, settings: Optional[EstimateSettings] = None) -> None:
        self.settings = settings or EstimateSettings()

    def car_minutes(self, distance_km: float, provider_duration_seconds: Optional[float] = None) -> int:
        s = self.settings
        if s.car_time_model == CAR_TIME_PROVIDER and provider_duration_seconds is not None:
            return round_half_up(max(0.0, provider_duration_seconds) / 60)
        return round_half_up(distance_km * s.car_seconds_per_km / 60)

    def estimate(self, distance_km: float, provider_duration_seconds: Optional[float] = None) -> TripEstimate:
        """Car/moto/walk minutes and a fare range for a trip of ``distance_km`` kilometres.

        Uses the full-precision distance for every figure; only the outputs
        are rounded.
        """
        s = self.settings
        km = max(0.0, float(distance_km))

        car = self.car_minutes(km, provider_duration_seconds)
        moto = max(1, round_half_up(car * s.moto_factor))
        walk = round_half_up(km * s.walk_minutes_per_km)

        raw_fare = km * s.fare_per_km
        fare = max(s.fare_minimum, round_half_up(raw_fare))
        fare_min = int(math.floor(_stable(raw_fare * s.fare_min_factor)))
        fare_max = max(fare, int(math.ceil(_stable(raw_fare * s.fare_max_factor))))

        return TripEstimate(
            # Half-up to one decimal, matching the member-visit screen's distance display.
            distance_km=round_half_up(km * 10) / 10,
            car_minutes=car,
            moto_minutes=moto,
            walk_minutes=walk,
            fare=fare,
            fare_min=fare_min,
            fare_max=fare_max,
        )

    def from_meters(self, distance_meters: float, provider_duration_seconds: Optional[float] = None) -> TripEstimate:
        return self.estimate(distance_meters / 1000, provider_duration_seconds)
