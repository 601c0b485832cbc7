import pytest

from taximeter.fare import (
    AIRPORT_TRIP,
    DEFAULT_RATES,
    DEFAULT_TRIP_TYPES,
    NORMAL_TRIP,
    OUTBOUND_TRIP,
    FareBreakdown,
    FareCalculator,
    TripType,
    billable_minutes,
    calculate_fare,
)


class TestFareCalculator:
    @pytest.mark.parametrize(
        "distance_km,expected",
        [
            (0.0, 50.0),
            (4.99, 50.0),
            (4.995, 50.0),
            (5.00, 60.0),
            (5.99, 60.0),
            (6.00, 65.0),
            (7.00, 70.0),
            (7.999, 70.0),
            (8.00, 80.0),
            (8.50, 88.0),
            (9.00, 96.0),
            (12.25, 148.0),
        ],
    )
    def test_tier_boundaries(self, calculator, normal_trip, distance_km, expected):
        breakdown = calculator.calculate(distance_km, 0, normal_trip)
        assert breakdown.total_fare == pytest.approx(expected)

    def test_waiting_minutes_added_at_rate(self, calculator, normal_trip):
        breakdown = calculator.calculate(distance_km=3.0, waiting_minutes=2, trip_type=normal_trip)

        assert isinstance(breakdown, FareBreakdown)
        assert breakdown.distance_charge == pytest.approx(50.0)
        assert breakdown.waiting_minutes == 2
        assert breakdown.waiting_charge == pytest.approx(6.0)
        assert breakdown.fixed_price is False
        assert breakdown.total_fare == pytest.approx(56.0)

    @pytest.mark.parametrize("distance_km", [0.0, 3.0, 8.0, 42.0])
    def test_airport_fixed_price_ignores_distance(self, calculator, airport_trip, distance_km):
        breakdown = calculator.calculate(distance_km, 0, airport_trip)

        assert breakdown.fixed_price is True
        assert breakdown.total_fare == pytest.approx(150.0)

    def test_fixed_price_still_bills_waiting(self, calculator):
        breakdown = calculator.calculate(20.0, 5, OUTBOUND_TRIP)
        assert breakdown.total_fare == pytest.approx(200.0 + 15.0)

    def test_zero_fixed_price_is_still_fixed(self, calculator):
        free_ride = TripType(id="promo", name="Promo", fixed_price=0)
        breakdown = calculator.calculate(12.0, 1, free_ride)
        assert breakdown.total_fare == pytest.approx(3.0)

    def test_new_trip_type_needs_no_code_change(self, calculator):
        shuttle = TripType(id="shuttle", name="Shuttle", description="Hotel shuttle", fixed_price=90)
        assert calculator.calculate(3.0, 0, shuttle).total_fare == pytest.approx(90.0)

    def test_distance_monotonic(self, calculator, normal_trip):
        previous = 0.0
        for step in range(0, 401):
            fare = calculator.calculate(step * 0.05, 0, normal_trip).total_fare
            assert fare >= previous
            previous = fare

    def test_waiting_monotonic(self, calculator, normal_trip):
        previous = 0.0
        for minutes in range(0, 61):
            fare = calculator.calculate(6.5, minutes, normal_trip).total_fare
            assert fare >= previous
            previous = fare

    def test_negative_distance_rejected(self, calculator, normal_trip):
        with pytest.raises(ValueError):
            calculator.calculate(-1.0, 0, normal_trip)

    def test_negative_waiting_rejected(self, calculator, normal_trip):
        with pytest.raises(ValueError):
            calculator.calculate(1.0, -1, normal_trip)

    def test_baseline(self, calculator):
        assert calculator.baseline(NORMAL_TRIP) == pytest.approx(50.0)
        assert calculator.baseline(AIRPORT_TRIP) == pytest.approx(150.0)
        assert calculator.baseline(OUTBOUND_TRIP) == pytest.approx(200.0)

    def test_deterministic(self, calculator, normal_trip):
        assert (
            calculator.calculate(9.3, 4, normal_trip).total_fare
            == calculator.calculate(9.3, 4, normal_trip).total_fare
        )


class TestCalculateFare:
    def test_matches_calculator(self):
        assert calculate_fare(9.0, 0, NORMAL_TRIP, DEFAULT_RATES) == pytest.approx(96.0)
        assert calculate_fare(1.0, 3, AIRPORT_TRIP, DEFAULT_RATES) == pytest.approx(159.0)


class TestBillableMinutes:
    @pytest.mark.parametrize(
        "seconds,minutes",
        [(0, 0), (59, 0), (60, 1), (119, 1), (120, 2), (3599, 59)],
    )
    def test_truncates_partial_minutes(self, seconds, minutes):
        assert billable_minutes(seconds) == minutes


class TestDefaultTripTypes:
    def test_default_types(self):
        assert [t.id for t in DEFAULT_TRIP_TYPES] == ["normal", "airport", "outbound"]
        assert NORMAL_TRIP.fixed_price is None
        assert AIRPORT_TRIP.fixed_price == 150
        assert OUTBOUND_TRIP.fixed_price == 200
