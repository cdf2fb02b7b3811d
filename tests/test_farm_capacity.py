"""
Unit tests for the farm capacity allocator.
"""
import itertools

import pytest

import farm_capacity
from farm_capacity import (
    FarmingType,
    InvalidFarmingType,
    InvalidLandSize,
    SpeciesRule,
    calculate_capacity,
    land_size_in_cents,
    parse_farming_types,
    plan_farm_setup,
    validate_land_size,
)

COW, GOAT, HEN, FISH = FarmingType.COW, FarmingType.GOAT, FarmingType.HEN, FarmingType.FISH
LAND_TYPES = (COW, GOAT, HEN)


class TestValidation:
    """Input checks run before any allocation."""

    @pytest.mark.parametrize("size", [10, 100, 5, 0, -3, 150, None, "30", True, float("nan")])
    def test_land_size_out_of_range(self, size):
        with pytest.raises(InvalidLandSize):
            validate_land_size(size)

    @pytest.mark.parametrize("size", [10.5, 11, 30, 99.9])
    def test_land_size_in_range(self, size):
        assert validate_land_size(size) == size

    def test_plan_rejects_small_land_before_allocating(self, monkeypatch):
        def boom(*args, **kwargs):
            raise AssertionError("allocation must not run")

        monkeypatch.setattr(farm_capacity, "calculate_capacity", boom)
        with pytest.raises(InvalidLandSize):
            plan_farm_setup(5, ["cow"])

    @pytest.mark.parametrize("size,unit,cents", [(30, "cents", 30), (0.3, "acres", 30), (0.55, "acres", 55)])
    def test_land_size_in_cents(self, size, unit, cents):
        assert land_size_in_cents(size, unit) == cents

    def test_land_size_in_cents_rejects_unknown_unit(self):
        with pytest.raises(InvalidLandSize, match="Unknown land unit"):
            land_size_in_cents(30, "hectares")

    def test_acres_are_validated_after_conversion(self):
        with pytest.raises(InvalidLandSize):
            validate_land_size(land_size_in_cents(30, "acres"))

    @pytest.mark.parametrize("types", [None, [], ""])
    def test_empty_selection(self, types):
        with pytest.raises(InvalidFarmingType, match="at least one"):
            parse_farming_types(types)

    def test_unknown_types_are_named(self):
        with pytest.raises(InvalidFarmingType, match="Invalid farming types: duck, pig"):
            parse_farming_types(["cow", "duck", "pig"])

    def test_duplicates_collapse_in_order(self):
        assert parse_farming_types(["hen", "cow", "hen"]) == [HEN, COW]


class TestLandAnimalAllocation:

    def test_cow_and_goat_on_30_cents(self):
        result = calculate_capacity(30, [COW, GOAT])
        cons = result["constraints"]

        assert result["areaBreakdown"]["usableArea"] == 9801
        assert cons["cow"]["maxByArea"] == 32
        assert cons["cow"]["maxByDensity"] == 22
        assert cons["cow"]["finalCount"] == 22
        assert cons["goat"]["maxByArea"] == 245
        assert cons["goat"]["maxByDensity"] == 75
        assert cons["goat"]["finalCount"] == 75
        assert "maxByWelfare" not in cons["cow"]

    def test_cow_breakdown_zones(self):
        cow = calculate_capacity(30, [COW, GOAT])["capacity"]["cow"]
        assert cow == {
            "count": 22,
            "areaUsed": 3300,
            "landSharePercent": 34,
            "shedArea": 1650,
            "milkingArea": 825,
            "fodderStorage": 825,
        }

    def test_goat_and_hen_zones(self):
        capacity = calculate_capacity(30, [COW, GOAT, HEN])["capacity"]
        assert capacity["goat"]["shedArea"] == 450
        assert capacity["goat"]["grazingArea"] == 750
        assert capacity["goat"]["waterFeedArea"] == 300
        assert capacity["hen"]["areaUsed"] == 2400
        assert capacity["hen"]["shedArea"] == 1440
        assert capacity["hen"]["feedArea"] == 600
        assert capacity["hen"]["eggCollectionArea"] == 360

    def test_three_types_share_usable_area(self):
        result = calculate_capacity(30, [COW, GOAT, HEN])
        cons = result["constraints"]

        assert cons["hen"]["maxByArea"] == 1089
        assert cons["hen"]["maxByWelfare"] == 800
        assert cons["hen"]["finalCount"] == 800
        assert cons["hen"]["limitingFactors"] == ["welfare cap"]
        assert cons["cow"]["finalCount"] == 21
        assert cons["cow"]["limitingFactors"] == ["available area"]
        assert cons["goat"]["finalCount"] == 75

    def test_order_does_not_change_counts(self):
        forward = calculate_capacity(30, [COW, GOAT, HEN])
        backward = calculate_capacity(30, [HEN, GOAT, COW])
        assert forward["constraints"] == backward["constraints"]
        assert forward["capacity"] == backward["capacity"]
        assert forward["areaBreakdown"] == backward["areaBreakdown"]

    def test_area_breakdown_totals(self):
        breakdown = calculate_capacity(30, [COW, GOAT])["areaBreakdown"]
        assert breakdown == {
            "totalArea": 13068,
            "totalLandCents": 30,
            "utilityArea": 3267,
            "usableArea": 9801,
            "totalAnimalAreaUsed": 4800,
            "remainingLandArea": 5001,
            "fishPondArea": 0,
            "landUtilization": 49,
        }

    def test_binding_constraint_warnings(self):
        warnings = calculate_capacity(30, [COW, GOAT, HEN])["warnings"]
        assert "Cow: limited by available area (21 animals)" in warnings
        assert "Goat: limited by density rule (75 animals)" in warnings
        assert "Hen: limited by welfare cap (800 animals)" in warnings

    def test_tied_constraints_are_all_recorded(self):
        result = calculate_capacity(13, [COW, GOAT, HEN])
        cow = result["constraints"]["cow"]
        assert cow["maxByArea"] == 9
        assert cow["maxByDensity"] == 9
        assert cow["finalCount"] == 9
        assert cow["limitingFactors"] == ["available area", "density rule"]
        assert "Cow: limited by available area & density rule (9 animals)" in result["warnings"]

    def test_hen_density_binds_on_small_land(self):
        cons = calculate_capacity(11, [HEN])["constraints"]["hen"]
        assert cons["maxByDensity"] == 330
        assert cons["finalCount"] == 330
        assert cons["limitingFactors"] == ["density rule"]

    def test_infeasible_type_is_a_warning(self, monkeypatch):
        rules = dict(farm_capacity.SPECIES_RULES)
        rules[COW] = SpeciesRule(space_sqft=100000, density_per_cent=0.75, welfare_cap=None, profit_per_unit=3000)
        monkeypatch.setattr(farm_capacity, "SPECIES_RULES", rules)

        result = calculate_capacity(30, [COW, GOAT])
        assert "cow" not in result["capacity"]
        assert result["constraints"]["cow"]["finalCount"] == 0
        assert "Cow not feasible with current land allocation" in result["warnings"]
        assert result["areaBreakdown"]["totalAnimalAreaUsed"] == 1500


class TestFishAllocation:

    def test_fish_only_on_50_cents(self):
        result = calculate_capacity(50, [FISH])
        cons = result["constraints"]["fish"]

        assert result["areaBreakdown"]["fishPondArea"] == 5445
        assert cons["maxByArea"] == 544
        assert cons["maxByDensity"] == 6000
        assert cons["maxByWelfare"] == 6000
        assert cons["finalCount"] == 544
        assert result["warnings"] == []

    def test_pond_metadata(self):
        fish = calculate_capacity(50, [FISH])["capacity"]["fish"]
        assert fish == {
            "pondArea": 5445,
            "pondSizeCents": 12.5,
            "pondDepth": 5,
            "fishTypes": ["Rohu", "Catla", "Tilapia"],
            "estimatedFishCount": 544,
        }

    def test_pond_does_not_reduce_land_pool(self):
        with_fish = calculate_capacity(30, [COW, GOAT, FISH])
        without_fish = calculate_capacity(30, [COW, GOAT])
        assert with_fish["capacity"]["cow"] == without_fish["capacity"]["cow"]
        assert with_fish["areaBreakdown"]["usableArea"] == without_fish["areaBreakdown"]["usableArea"]
        assert with_fish["areaBreakdown"]["remainingLandArea"] == 5001

    def test_fish_only_leaves_land_unused(self):
        breakdown = calculate_capacity(50, [FISH])["areaBreakdown"]
        assert breakdown["totalAnimalAreaUsed"] == 0
        assert breakdown["landUtilization"] == 0


class TestAllocationProperties:

    @staticmethod
    def _selections():
        for r in range(1, len(LAND_TYPES) + 1):
            yield from itertools.combinations(LAND_TYPES, r)

    @pytest.mark.parametrize("size", [10.5, 11, 17.3, 30, 42, 64.5, 99, 99.9])
    def test_land_area_never_exceeds_usable(self, size):
        usable = size * 435.6 * 0.75
        for selection in self._selections():
            result = calculate_capacity(size, list(selection))
            used = sum(entry["areaUsed"] for entry in result["capacity"].values())
            assert used <= usable + 0.5

    @pytest.mark.parametrize("size", [10.5, 25, 50, 75, 99.9])
    def test_final_count_is_min_of_candidates(self, size):
        result = calculate_capacity(size, [COW, GOAT, HEN, FISH])
        for rec in result["constraints"].values():
            candidates = [rec["maxByArea"], rec["maxByDensity"]]
            if "maxByWelfare" in rec:
                candidates.append(rec["maxByWelfare"])
            assert rec["finalCount"] == min(candidates)

    @pytest.mark.parametrize("size", [20, 50, 80, 99.9])
    def test_welfare_caps_hold(self, size):
        result = calculate_capacity(size, [HEN, FISH])
        assert result["capacity"]["hen"]["count"] <= 800
        assert result["capacity"]["fish"]["estimatedFishCount"] <= 6000

    def test_total_area_within_parcel(self):
        result = calculate_capacity(60, [COW, GOAT, HEN, FISH])
        breakdown = result["areaBreakdown"]
        assert breakdown["totalAnimalAreaUsed"] + breakdown["fishPondArea"] <= breakdown["totalArea"]

    def test_same_input_same_output(self, today):
        first = plan_farm_setup(45, ["cow", "hen", "fish"], today=today)
        second = plan_farm_setup(45, ["cow", "hen", "fish"], today=today)
        assert first == second
