"""
Farm capacity planning for mixed livestock / fish farms.

Given a land size in cents and the selected farming types, the usable land is
split equally among the selected land animals and each type is clamped by
available area, density per cent and (hen/fish only) an absolute welfare cap.
Fish get a separate pond carved out of the total area. Profit, water demand,
waste reuse and maintenance load are derived from the resulting counts.
"""
import logging
import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


# Errors

class FarmSetupError(ValueError):
    """Invalid farm setup input. The message is safe to show to the farmer."""


class InvalidLandSize(FarmSetupError):
    pass


class InvalidFarmingType(FarmSetupError):
    pass


# Constants

class FarmingType(str, Enum):
    COW = "cow"
    GOAT = "goat"
    HEN = "hen"
    FISH = "fish"


class Season(str, Enum):
    SUMMER = "summer"
    MONSOON = "monsoon"
    POST_MONSOON = "post-monsoon"
    WINTER = "winter"


@dataclass(frozen=True)
class SpeciesRule:
    space_sqft: float
    density_per_cent: float
    welfare_cap: Optional[int]
    profit_per_unit: int


SQFT_PER_CENT = 435.6
UTILITY_PERCENT = 0.25  # pathways, storage, movement
FISH_POND_PERCENT = 0.25
POND_DEPTH = 5
FISH_TYPES = ("Rohu", "Catla", "Tilapia")
CUBIC_FEET_TO_LITERS = 28.3168
MIN_LAND_CENTS = 10
MAX_LAND_CENTS = 100
CENTS_PER_ACRE = 100
LAND_UNITS = ("cents", "acres")

# For fish, space_sqft is pond area per fish.
SPECIES_RULES = MappingProxyType({
    FarmingType.COW: SpeciesRule(space_sqft=150, density_per_cent=0.75, welfare_cap=None, profit_per_unit=3000),
    FarmingType.GOAT: SpeciesRule(space_sqft=20, density_per_cent=2.5, welfare_cap=None, profit_per_unit=500),
    FarmingType.HEN: SpeciesRule(space_sqft=3, density_per_cent=30, welfare_cap=800, profit_per_unit=50),
    FarmingType.FISH: SpeciesRule(space_sqft=10, density_per_cent=120, welfare_cap=6000, profit_per_unit=20),
})

# Fractions of a land animal's area used, keyed by output field name
ZONE_SPLITS = MappingProxyType({
    FarmingType.COW: (("shedArea", 0.50), ("milkingArea", 0.25), ("fodderStorage", 0.25)),
    FarmingType.GOAT: (("shedArea", 0.30), ("grazingArea", 0.50), ("waterFeedArea", 0.20)),
    FarmingType.HEN: (("shedArea", 0.60), ("feedArea", 0.25), ("eggCollectionArea", 0.15)),
})

SEASONAL_SUITABILITY = MappingProxyType({
    FarmingType.HEN: {
        Season.SUMMER: ("medium", "Need proper ventilation and cooling"),
        Season.MONSOON: ("medium", "Maintain dry conditions in shed"),
        Season.WINTER: ("high", "Ideal temperature for egg production"),
        Season.POST_MONSOON: ("high", "Good conditions for poultry"),
    },
    FarmingType.GOAT: {
        Season.SUMMER: ("high", "Goats adapt well, ensure shade and water"),
        Season.MONSOON: ("medium", "Keep shelter dry, watch for infections"),
        Season.WINTER: ("high", "Excellent breeding season"),
        Season.POST_MONSOON: ("high", "Good grazing conditions"),
    },
    FarmingType.COW: {
        Season.SUMMER: ("medium", "Provide shade and ample water"),
        Season.MONSOON: ("medium", "Maintain hygiene to prevent diseases"),
        Season.WINTER: ("high", "Peak milk production season"),
        Season.POST_MONSOON: ("high", "Good fodder availability"),
    },
    FarmingType.FISH: {
        Season.SUMMER: ("low", "Water levels may drop, monitor oxygen"),
        Season.MONSOON: ("high", "Best season for fish farming"),
        Season.WINTER: ("medium", "Growth rate may slow down"),
        Season.POST_MONSOON: ("high", "Excellent for harvesting"),
    },
})

WATER_LITERS_PER_ANIMAL = MappingProxyType({
    FarmingType.HEN: 0.25,
    FarmingType.GOAT: 5,
    FarmingType.COW: 50,
})
POND_DAILY_TOPUP = 0.05

MAINTENANCE_POINTS = MappingProxyType({
    FarmingType.COW: 3,
    FarmingType.FISH: 2,
    FarmingType.GOAT: 2,
    FarmingType.HEN: 1,
})
MAINTENANCE_WEIGHTS = MappingProxyType({
    FarmingType.HEN: 1,
    FarmingType.GOAT: 5,
    FarmingType.COW: 10,
})

LIMIT_AREA = "available area"
LIMIT_DENSITY = "density rule"
LIMIT_WELFARE = "welfare cap"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def current_season(today: Optional[date] = None) -> Season:
    month = (today or date.today()).month
    if 3 <= month <= 5:
        return Season.SUMMER
    if 6 <= month <= 9:
        return Season.MONSOON
    if 10 <= month <= 11:
        return Season.POST_MONSOON
    return Season.WINTER


# Validation

def land_size_in_cents(land_size: Any, unit: str = "cents") -> Any:
    """Convert a land size to cents. Non-numeric sizes pass through for validation."""
    if unit not in LAND_UNITS:
        raise InvalidLandSize(f"Unknown land unit: {unit}")
    if unit == "acres" and isinstance(land_size, (int, float)) and not isinstance(land_size, bool):
        return round(land_size * CENTS_PER_ACRE, 6)
    return land_size


def validate_land_size(land_size: Any) -> float:
    message = f"Land must be greater than {MIN_LAND_CENTS} cents and less than {MAX_LAND_CENTS} cents"
    if isinstance(land_size, bool) or not isinstance(land_size, (int, float)):
        raise InvalidLandSize(message)
    if not math.isfinite(land_size) or not MIN_LAND_CENTS < land_size < MAX_LAND_CENTS:
        raise InvalidLandSize(message)
    return land_size


def parse_farming_types(types: Optional[Iterable[str]]) -> List[FarmingType]:
    types = [] if types is None or isinstance(types, str) else list(types)
    if not types:
        raise InvalidFarmingType("Please select at least one farming type")
    valid = {t.value for t in FarmingType}
    invalid = [str(t) for t in types if t not in valid]
    if invalid:
        raise InvalidFarmingType(f"Invalid farming types: {', '.join(invalid)}")
    parsed: List[FarmingType] = []
    for t in types:
        ft = FarmingType(t)
        if ft not in parsed:
            parsed.append(ft)
    return parsed


# Allocation

def _limiting_factors(final_count: int, max_by_area: int, max_by_density: int,
                      max_by_welfare: Optional[int]) -> List[str]:
    factors = []
    if final_count == max_by_area:
        factors.append(LIMIT_AREA)
    if final_count == max_by_density:
        factors.append(LIMIT_DENSITY)
    if max_by_welfare is not None and final_count == max_by_welfare:
        factors.append(LIMIT_WELFARE)
    return factors


def _constraint_record(max_by_area: int, max_by_density: int, max_by_welfare: Optional[int],
                       final_count: int, factors: List[str]) -> Dict[str, Any]:
    record: Dict[str, Any] = {"maxByArea": max_by_area, "maxByDensity": max_by_density}
    if max_by_welfare is not None:
        record["maxByWelfare"] = max_by_welfare
    record["finalCount"] = final_count
    record["limitingFactors"] = factors
    return record


def calculate_capacity(land_size: float, farming_types: Iterable[FarmingType]) -> Dict[str, Any]:
    """Allocate land among the selected types.

    Every land animal gets the same budget, ``usable_area / len(land_types)``,
    computed from the full usable area. ``remaining_area`` is only decremented
    for the reported leftover; it never feeds back into another type's budget,
    so processing order does not change any count.
    """
    validate_land_size(land_size)
    farming_types = list(farming_types)

    total_area = land_size * SQFT_PER_CENT
    utility_area = total_area * UTILITY_PERCENT
    usable_area = total_area - utility_area

    has_fish = FarmingType.FISH in farming_types
    fish_pond_area = total_area * FISH_POND_PERCENT if has_fish else 0

    capacity: Dict[str, Dict[str, Any]] = {}
    constraints: Dict[str, Dict[str, Any]] = {}
    warnings: List[str] = []
    remaining_area = usable_area
    total_animal_area = 0.0

    land_types = [t for t in farming_types if t is not FarmingType.FISH]
    if land_types:
        equal_share = usable_area / len(land_types)
        for ft in land_types:
            rule = SPECIES_RULES[ft]
            label = ft.value.capitalize()

            max_by_area = math.floor(equal_share / rule.space_sqft)
            max_by_density = math.floor(land_size * rule.density_per_cent)
            candidates = [max_by_area, max_by_density]
            if rule.welfare_cap is not None:
                candidates.append(rule.welfare_cap)
            final_count = max(min(candidates), 0)

            factors = _limiting_factors(final_count, max_by_area, max_by_density, rule.welfare_cap)
            constraints[ft.value] = _constraint_record(
                max_by_area, max_by_density, rule.welfare_cap, final_count, factors
            )

            if final_count <= 0:
                warnings.append(f"{label} not feasible with current land allocation")
                continue

            area_used = final_count * rule.space_sqft
            remaining_area -= area_used
            total_animal_area += area_used

            entry: Dict[str, Any] = {
                "count": final_count,
                "areaUsed": round_half_up(area_used),
                "landSharePercent": round_half_up(area_used / usable_area * 100),
            }
            for zone, fraction in ZONE_SPLITS[ft]:
                entry[zone] = round_half_up(area_used * fraction)
            capacity[ft.value] = entry

            if factors:
                warnings.append(f"{label}: limited by {' & '.join(factors)} ({final_count} animals)")

    if has_fish:
        rule = SPECIES_RULES[FarmingType.FISH]
        max_by_area = math.floor(fish_pond_area / rule.space_sqft)
        max_by_density = math.floor(land_size * rule.density_per_cent)
        final_count = max(min(max_by_area, max_by_density, rule.welfare_cap), 0)
        factors = _limiting_factors(final_count, max_by_area, max_by_density, rule.welfare_cap)
        constraints[FarmingType.FISH.value] = _constraint_record(
            max_by_area, max_by_density, rule.welfare_cap, final_count, factors
        )

        if final_count > 0:
            capacity[FarmingType.FISH.value] = {
                "pondArea": round_half_up(fish_pond_area),
                "pondSizeCents": round_half_up(fish_pond_area / SQFT_PER_CENT * 10) / 10,
                "pondDepth": POND_DEPTH,
                "fishTypes": list(FISH_TYPES),
                "estimatedFishCount": final_count,
            }
            if final_count == max_by_density and max_by_density < max_by_area:
                warnings.append(f"Fish: limited by density rule ({final_count} fish)")
        else:
            warnings.append("Fish farming not feasible for selected land size")

    area_breakdown = {
        "totalArea": round_half_up(total_area),
        "totalLandCents": land_size,
        "utilityArea": round_half_up(utility_area),
        "usableArea": round_half_up(usable_area),
        "totalAnimalAreaUsed": round_half_up(total_animal_area),
        "remainingLandArea": round_half_up(remaining_area),
        "fishPondArea": round_half_up(fish_pond_area),
        "landUtilization": round_half_up(total_animal_area / usable_area * 100),
    }

    return {
        "capacity": capacity,
        "areaBreakdown": area_breakdown,
        "constraints": constraints,
        "warnings": warnings,
    }


# Derived metrics

def _count(capacity: Dict[str, Dict[str, Any]], ft: FarmingType) -> int:
    entry = capacity.get(ft.value)
    if not entry:
        return 0
    if ft is FarmingType.FISH:
        return entry.get("estimatedFishCount", 0)
    return entry.get("count", 0)


def calculate_profit(capacity: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, int]]:
    # annual total is monthly total * 12; per-type annual figures are informational
    monthly: Dict[str, int] = {"total": 0}
    annual: Dict[str, int] = {}
    for ft in (FarmingType.HEN, FarmingType.GOAT, FarmingType.COW, FarmingType.FISH):
        count = _count(capacity, ft)
        if count <= 0:
            continue
        monthly[ft.value] = count * SPECIES_RULES[ft].profit_per_unit
        annual[ft.value] = monthly[ft.value] * 12
        monthly["total"] += monthly[ft.value]
    annual["total"] = monthly["total"] * 12
    return {"monthly": monthly, "annual": annual}


def seasonal_recommendations(farming_types: Iterable[FarmingType], season: Season) -> List[Dict[str, str]]:
    recommendations = []
    for ft in farming_types:
        row = SEASONAL_SUITABILITY.get(ft, {}).get(season)
        if row is None:
            continue
        suitability, notes = row
        recommendations.append({
            "farmingType": ft.value,
            "season": season.value,
            "suitability": suitability,
            "notes": notes,
        })
    return recommendations


def calculate_waste_reuse(capacity: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    cows = _count(capacity, FarmingType.COW)
    has_cow = cows > 0
    has_fish = _count(capacity, FarmingType.FISH) > 0

    flow = {
        "hasBiogas": has_cow and cows >= 2,
        "biogasCapacity": math.floor(cows * 2) if has_cow else 0,
        "slurryForFertilizer": has_cow,
        "slurryForFishPond": has_cow and has_fish,
    }

    notes = []
    if flow["hasBiogas"]:
        notes.append("Cow dung can generate biogas for cooking.")
    if flow["slurryForFishPond"]:
        notes.append("Biogas slurry can enrich fish pond with natural plankton, reducing feed costs by 20-30%.")
    elif flow["slurryForFertilizer"]:
        notes.append("Biogas slurry can be used as organic fertilizer.")
    flow["notes"] = " ".join(notes)
    return flow


def calculate_water_requirement(capacity: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    daily_liters = 0.0
    for ft, liters in WATER_LITERS_PER_ANIMAL.items():
        daily_liters += _count(capacity, ft) * liters

    fish = capacity.get(FarmingType.FISH.value)
    if fish and fish.get("estimatedFishCount", 0) > 0:
        pond_volume_liters = fish["pondArea"] * fish["pondDepth"] * CUBIC_FEET_TO_LITERS
        daily_liters += round_half_up(pond_volume_liters * POND_DAILY_TOPUP)

    if daily_liters > 500:
        level = "high"
    elif daily_liters > 200:
        level = "moderate"
    else:
        level = "low"
    return {"level": level, "dailyLiters": round_half_up(daily_liters)}


def calculate_maintenance_level(farming_types: Iterable[FarmingType], capacity: Dict[str, Dict[str, Any]]) -> str:
    score = sum(MAINTENANCE_POINTS[ft] for ft in set(farming_types))

    weighted = sum(_count(capacity, ft) * weight for ft, weight in MAINTENANCE_WEIGHTS.items())
    if weighted > 500:
        score += 2
    elif weighted > 200:
        score += 1

    if score >= 6:
        return "high"
    if score >= 3:
        return "medium"
    return "low"


def visualization_prompt(land_size: float, capacity: Dict[str, Dict[str, Any]]) -> str:
    zones = []
    hens = _count(capacity, FarmingType.HEN)
    if hens:
        zones.append(f"a poultry shed for {hens} hens with feeding area and egg collection zone")
    goats = _count(capacity, FarmingType.GOAT)
    if goats:
        zones.append(f"a raised goat shelter for {goats} goats with open grazing area")
    cows = _count(capacity, FarmingType.COW)
    if cows:
        zones.append(f"a cattle shed for {cows} cows with milking area and fodder storage")
    fish = capacity.get(FarmingType.FISH.value)
    if fish and fish.get("estimatedFishCount", 0) > 0:
        zones.append(
            f"a fish pond covering {fish['pondSizeCents']} cents with water inlet and outlet "
            f"for {', '.join(fish['fishTypes'])}"
        )

    pond_layout = ", fish pond in separate section" if fish else ""
    return "\n".join([
        "Generate a realistic 3D AI visualization of an agriculture farm setup:",
        f"- Total land: {land_size:g} cents",
        "- Location: Rural Indian agricultural land",
        f"- Zones: {'; '.join(zones)}",
        f"- Layout: Optimized mixed farming layout with shared land allocation{pond_layout}",
        "- Style: Clean, practical, farmer-friendly layout with clear labels",
        "- Include: Natural surroundings (trees, soil, fencing), pathways, water sources",
        "- View: Aerial + side-view mixed layout, eco-friendly design suitable for small-scale Indian farmers",
    ])


# Orchestration

def plan_farm_setup(land_size: Any, farming_types: Optional[Iterable[str]],
                    today: Optional[date] = None) -> Dict[str, Any]:
    """Validate input and build the full farm setup plan.

    Raises InvalidLandSize / InvalidFarmingType before any allocation work.
    """
    land_size = validate_land_size(land_size)
    selected = parse_farming_types(farming_types)
    season = current_season(today)

    allocation = calculate_capacity(land_size, selected)
    capacity = allocation["capacity"]

    logger.info(
        "Farm setup planned: %s cents, types=%s, warnings=%d",
        land_size, ",".join(ft.value for ft in selected), len(allocation["warnings"]),
    )

    return {
        "landSize": land_size,
        "landSizeSqFt": allocation["areaBreakdown"]["totalArea"],
        "areaBreakdown": allocation["areaBreakdown"],
        "farmingTypes": [ft.value for ft in selected],
        "calculatedCapacity": capacity,
        "constraints": allocation["constraints"],
        "profitEstimate": calculate_profit(capacity),
        "seasonalRecommendations": seasonal_recommendations(selected, season),
        "wasteReuseFlow": calculate_waste_reuse(capacity),
        "waterRequirement": calculate_water_requirement(capacity),
        "maintenanceLevel": calculate_maintenance_level(selected, capacity),
        "visualizationPrompt": visualization_prompt(land_size, capacity),
        "warnings": allocation["warnings"],
        "currentSeason": season.value,
    }
