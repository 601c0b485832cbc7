import pytest

from taximeter.core.exceptions import ConfigurationFault
from taximeter.fare import (
    DEFAULT_RATES,
    NORMAL_TRIP,
    DistanceTier,
    FareCalculator,
    RateSchedule,
    TripType,
    index_trip_types,
)


def _schedule(*tiers: DistanceTier, precision: int = 2) -> RateSchedule:
    return RateSchedule(
        base_fare=50,
        waiting_rate_per_minute=3,
        distance_tiers=tiers,
        tier_precision=precision,
    )


@pytest.mark.unit
class TestDistanceTier:
    def test_flat_price(self):
        tier = DistanceTier(min_km=0, max_km=4.99, price=50)
        assert tier.contains(0.0)
        assert tier.contains(4.99)
        assert not tier.contains(5.0)
        assert tier.charge(3.0) == 50

    def test_extra_rate_defaults_breakpoint_to_lower_bound(self):
        tier = DistanceTier(min_km=8, base_price=80, extra_rate_per_km=16)
        assert tier.is_unbounded
        assert tier.effective_breakpoint_km == 8
        assert tier.charge(8.0) == pytest.approx(80.0)
        assert tier.charge(10.0) == pytest.approx(112.0)

    def test_explicit_breakpoint(self):
        tier = DistanceTier(min_km=8, base_price=80, extra_rate_per_km=10, breakpoint_km=10)
        assert tier.charge(9.0) == pytest.approx(80.0)
        assert tier.charge(12.0) == pytest.approx(100.0)

    def test_missing_price_is_configuration_fault(self):
        with pytest.raises(ConfigurationFault):
            DistanceTier(min_km=0, max_km=5)

    def test_extra_rate_without_base_is_configuration_fault(self):
        with pytest.raises(ConfigurationFault):
            DistanceTier(min_km=8, price=80, extra_rate_per_km=16)

    def test_inverted_bounds_is_configuration_fault(self):
        with pytest.raises(ConfigurationFault):
            DistanceTier(min_km=5, max_km=4, price=10)


@pytest.mark.unit
class TestRateScheduleValidation:
    def test_default_rates_are_valid(self):
        assert DEFAULT_RATES.base_fare == 50
        assert DEFAULT_RATES.waiting_rate_per_minute == 3
        assert len(DEFAULT_RATES.distance_tiers) == 5

    def test_gap_between_tiers(self):
        with pytest.raises(ConfigurationFault, match="gap"):
            _schedule(
                DistanceTier(min_km=0, max_km=4.99, price=50),
                DistanceTier(min_km=5.5, price=60),
            )

    def test_overlapping_tiers(self):
        with pytest.raises(ConfigurationFault, match="overlaps"):
            _schedule(
                DistanceTier(min_km=0, max_km=4.99, price=50),
                DistanceTier(min_km=4.5, price=60),
            )

    def test_first_tier_must_start_at_zero(self):
        with pytest.raises(ConfigurationFault):
            _schedule(DistanceTier(min_km=1, price=50))

    def test_last_tier_must_be_unbounded(self):
        with pytest.raises(ConfigurationFault):
            _schedule(
                DistanceTier(min_km=0, max_km=4.99, price=50),
                DistanceTier(min_km=5, max_km=9.99, price=60),
            )

    def test_unbounded_tier_must_be_last(self):
        with pytest.raises(ConfigurationFault):
            _schedule(
                DistanceTier(min_km=0, price=50),
                DistanceTier(min_km=5, price=60),
            )

    def test_empty_schedule(self):
        with pytest.raises(ConfigurationFault):
            _schedule()

    def test_fault_carries_details(self):
        with pytest.raises(ConfigurationFault) as exc_info:
            _schedule(
                DistanceTier(min_km=0, max_km=4.99, price=50),
                DistanceTier(min_km=6, price=60),
            )
        assert exc_info.value.details["index"] == 1
        assert exc_info.value.details["expected_min_km"] == pytest.approx(5.0)

    def test_coarser_precision(self):
        schedule = _schedule(
            DistanceTier(min_km=0, max_km=2.9, price=30),
            DistanceTier(min_km=3.0, price=45),
            precision=1,
        )
        assert schedule.tier_for(2.95).price == 30
        assert schedule.tier_for(3.0).price == 45

    def test_single_unbounded_tier(self):
        schedule = _schedule(DistanceTier(min_km=0, base_price=20, extra_rate_per_km=10))
        calculator = FareCalculator(schedule)
        assert calculator.calculate(2.5, 0, NORMAL_TRIP).total_fare == pytest.approx(45.0)


@pytest.mark.unit
class TestTierLookup:
    def test_lookup_truncates_to_precision(self):
        assert DEFAULT_RATES.lookup_distance(4.999) == pytest.approx(4.99)
        assert DEFAULT_RATES.lookup_distance(4.99) == pytest.approx(4.99)
        assert DEFAULT_RATES.lookup_distance(5.0) == pytest.approx(5.0)

    def test_first_match_wins(self):
        assert DEFAULT_RATES.tier_for(5.0).price == 60
        assert DEFAULT_RATES.tier_for(8.0).base_price == 80
        assert DEFAULT_RATES.tier_for(1_000.0).is_unbounded


@pytest.mark.unit
class TestIndexTripTypes:
    def test_indexes_by_id(self):
        a = TripType(id="a", name="A")
        b = TripType(id="b", name="B", fixed_price=10)
        assert index_trip_types([a, b]) == {"a": a, "b": b}

    def test_duplicate_ids(self):
        with pytest.raises(ConfigurationFault):
            index_trip_types([TripType(id="a", name="A"), TripType(id="a", name="Other")])

    def test_empty(self):
        with pytest.raises(ConfigurationFault):
            index_trip_types([])
