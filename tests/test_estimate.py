import pytest

from visitroute.estimate import CAR_TIME_PROVIDER, EstimateSettings, TripEstimator, round_half_up


def test_ten_km_trip_matches_reference_figures():
    estimate = TripEstimator().estimate(10.0)

    assert estimate.distance_km == 10.0
    assert estimate.car_minutes == 27
    assert estimate.moto_minutes == 23
    assert estimate.walk_minutes == 150
    assert estimate.fare == 60
    assert estimate.fare_min == 54
    assert estimate.fare_max == 72


@pytest.mark.parametrize("km", [0.0, 0.3, 1.0, 2.45, 7.8, 12.34, 33.3])
def test_formulas_hold_for_any_distance(km):
    estimate = TripEstimator().estimate(km)

    assert estimate.car_minutes == round_half_up(km * 160 / 60)
    assert estimate.moto_minutes == max(1, round_half_up(estimate.car_minutes * 0.85))
    assert estimate.walk_minutes == round_half_up(km * 15)
    assert estimate.fare == max(6, round_half_up(km * 6.0))


def test_short_trip_gets_fare_floor_and_one_minute_moto():
    estimate = TripEstimator().estimate(0.1)

    assert estimate.car_minutes == 0
    assert estimate.moto_minutes == 1
    assert estimate.fare == 6
    assert estimate.fare_min == 0
    assert estimate.fare_max >= estimate.fare


def test_rounding_is_half_away_from_zero():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(-2.5) == -3
    assert round(2.5) == 2


def test_car_minutes_ignore_provider_duration_by_default():
    estimate = TripEstimator().estimate(10.0, provider_duration_seconds=3600)

    assert estimate.car_minutes == 27


def test_provider_duration_variant_is_a_setting():
    estimator = TripEstimator(EstimateSettings(car_time_model=CAR_TIME_PROVIDER))

    estimate = estimator.estimate(10.0, provider_duration_seconds=750)

    assert estimate.car_minutes == 13
    assert estimate.moto_minutes == 11


def test_distance_is_rounded_to_one_decimal_but_math_uses_full_precision():
    estimate = TripEstimator().from_meters(2449)

    assert estimate.distance_km == 2.4
    assert estimate.walk_minutes == 37


def test_negative_distance_is_clamped_to_zero():
    estimate = TripEstimator().estimate(-3.0)

    assert estimate.distance_km == 0.0
    assert estimate.walk_minutes == 0
    assert estimate.fare == 6


def test_display_distance_rounds_half_up_rather_than_truncating():
    assert TripEstimator().from_meters(2450).distance_km == 2.5
    assert TripEstimator().from_meters(2449).distance_km == 2.4
