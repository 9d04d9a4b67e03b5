"""
Strength Standards & Analytics
Pure functions that turn a lift into an estimated 1RM, a population
percentile and a tier.

CONCEPTS DEMONSTRATED:
1. 1RM Estimation - Epley-family linear estimate from a sub-maximal set
2. Piecewise Interpolation - percentile from bodyweight-multiple standards
3. Ordered Lookup Tables - tiers are a sorted threshold table, not if/else chains

Nothing in this module touches storage; record_lift lives in
progress_tracker.py and is the only code that writes ExerciseProgress.
"""

import math
from bisect import bisect_right
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from .models import Gender, LiftCategory


@dataclass(frozen=True)
class StrengthStandard:
    """
    Bodyweight multipliers for one exercise, by population percentile:
    beginner ~10th, intermediate ~25th, advanced ~50th,
    elite ~75th, superior ~90th.
    """
    beginner: float
    intermediate: float
    advanced: float
    elite: float
    superior: float

    @property
    def multipliers(self) -> Tuple[float, ...]:
        return (self.beginner, self.intermediate, self.advanced, self.elite, self.superior)


# Percentile reached at each multiplier above, preceded by the 0x bodyweight origin
PERCENTILE_KNOTS = (0, 10, 25, 50, 75, 90)

# Ratios past the superior multiplier climb towards this cap
PERCENTILE_CAP = 99

# Bodyweight multipliers from drug-tested, unequipped powerlifting meet data
# (van den Hoek et al. 2024) for the big barbell lifts; accessory lifts are estimates.
MALE_STANDARDS: Dict[str, StrengthStandard] = {
    'squat-barbell':                     StrengthStandard(0.75, 1.25, 1.5, 2.2, 2.8),
    'bench-press-barbell':               StrengthStandard(0.671, 0.75, 1.201, 1.532, 2.169),
    'deadlift-barbell':                  StrengthStandard(1.069, 1.415, 1.832, 2.504, 3.227),
    'overhead-press-barbell':            StrengthStandard(0.414, 0.580, 0.783, 1.018, 1.463),
    'bench-press-dumbbells':             StrengthStandard(0.225, 0.348, 0.507, 0.695, 0.904),
    'bicep-curl-dumbbells':              StrengthStandard(0.091, 0.175, 0.292, 0.439, 0.699),
    'bicep-curl-barbell':                StrengthStandard(0.108, 0.213, 0.362, 0.550, 0.884),
    'leg-press-machine':                 StrengthStandard(1.0, 1.75, 2.75, 4.0, 5.25),
    'row-barbell':                       StrengthStandard(0.5, 0.75, 1.0, 1.50, 1.75),
    'incline-bench-press-barbell':       StrengthStandard(0.5, 0.75, 1.0, 1.50, 1.75),
    'lat-pulldown-cables':               StrengthStandard(0.5, 0.75, 1.0, 1.50, 1.75),
    'leg-extension-machine':             StrengthStandard(0.5, 0.75, 1.25, 1.75, 2.50),
    'romanian-deadlift-barbell':         StrengthStandard(0.75, 1.00, 1.50, 2.00, 2.75),
    'incline-bench-press-dumbbells':     StrengthStandard(0.25, 0.35, 0.50, 0.65, 0.85),
    'shoulder-press-dumbbells':          StrengthStandard(0.15, 0.25, 0.40, 0.60, 0.75),
    'front-squat-barbell':               StrengthStandard(0.75, 1.0, 1.25, 1.75, 2.25),
    'hip-thrust-barbell':                StrengthStandard(0.5, 1.0, 1.75, 2.50, 3.50),
    'lateral-raise-dumbbells':           StrengthStandard(0.05, 0.10, 0.20, 0.30, 0.45),
    'row-cables':                        StrengthStandard(0.50, 0.75, 1.00, 1.50, 2.00),
    'hack-squat-machine':                StrengthStandard(0.75, 1.25, 2.00, 2.75, 4.00),
    'preacher-curl-dumbbells':           StrengthStandard(0.20, 0.35, 0.60, 0.85, 1.10),
    'overhead-press-machine':            StrengthStandard(0.25, 0.5, 1.00, 1.50, 2.00),
    'tricep-pushdown-cables':            StrengthStandard(0.25, 0.50, 0.75, 1.00, 1.50),
    'hammer-curl-dumbbells':             StrengthStandard(0.10, 0.20, 0.30, 0.45, 0.60),
    'bicep-curl-cables':                 StrengthStandard(0.15, 0.35, 0.65, 1.05, 1.50),
    'row-dumbbells':                     StrengthStandard(0.20, 0.35, 0.55, 0.80, 1.05),
    'seated-row-machine':                StrengthStandard(0.50, 0.75, 1.00, 1.50, 2.00),
    'leg-curl-machine':                  StrengthStandard(0.50, 0.75, 1.00, 1.50, 2.00),
    'calf-raise-machine':                StrengthStandard(0.50, 1.00, 1.75, 2.75, 4.00),
    'chest-fly-cables':                  StrengthStandard(0.05, 0.25, 0.50, 0.85, 1.35),
    'flyes-dumbbells':                   StrengthStandard(0.10, 0.15, 0.30, 0.50, 0.70),
    'sumo-deadlift-barbell':             StrengthStandard(1.25, 1.50, 2.25, 2.75, 3.50),
    'bench-press-machine':               StrengthStandard(0.50, 0.75, 1.25, 1.75, 2.25),
    'bench-press-smith-machine':         StrengthStandard(0.50, 1.00, 1.25, 1.75, 2.25),
    'squat-smith-machine':               StrengthStandard(0.75, 1.00, 1.50, 2.25, 3.00),
    'tricep-extension-dumbbells':        StrengthStandard(0.15, 0.35, 0.65, 1.00, 1.40),
    'walking-lunge-dumbbells':           StrengthStandard(0.10, 0.20, 0.40, 0.60, 0.85),
    'lunges-barbell':                    StrengthStandard(0.50, 0.75, 1.00, 1.50, 2.00),
    'romanian-deadlift-dumbbells':       StrengthStandard(0.15, 0.30, 0.55, 0.80, 1.10),
    'goblet-squat-dumbbells':            StrengthStandard(0.20, 0.35, 0.55, 0.85, 1.15),
    'goblet-squat-kettlebell':           StrengthStandard(0.20, 0.35, 0.55, 0.85, 1.15),
    'bulgarian-split-squat-dumbbells':   StrengthStandard(0.25, 0.50, 0.75, 1.25, 1.75),
    'rear-delt-fly-dumbbells':           StrengthStandard(0.05, 0.10, 0.25, 0.40, 0.60),
    'rear-delt-fly-cables':              StrengthStandard(0.05, 0.10, 0.25, 0.40, 0.60),
    'arnold-press-dumbbells':            StrengthStandard(0.10, 0.20, 0.30, 0.45, 0.65),
    'lateral-raise-cables':              StrengthStandard(0.00, 0.10, 0.25, 0.45, 0.75),
    'skull-crushers-dumbbells':          StrengthStandard(0.20, 0.35, 0.55, 0.80, 1.10),
    'overhead-tricep-extension-cables':  StrengthStandard(0.15, 0.35, 0.65, 1.00, 1.40),
    'crossover-cables':                  StrengthStandard(0.05, 0.25, 0.50, 0.85, 1.35),
    'chest-fly-machine':                 StrengthStandard(0.25, 0.50, 0.85, 1.25, 1.75),
    'hip-thrust-machine':                StrengthStandard(0.50, 1.00, 1.75, 2.50, 3.50),
}

FEMALE_STANDARDS: Dict[str, StrengthStandard] = {
    'squat-barbell':                     StrengthStandard(0.5, 0.75, 1.25, 1.50, 2.00),
    'bench-press-barbell':               StrengthStandard(0.25, 0.5, 0.8, 1.0, 1.50),
    'deadlift-barbell':                  StrengthStandard(0.594, 0.887, 1.261, 1.698, 2.504),
    'overhead-press-barbell':            StrengthStandard(0.204, 0.328, 0.490, 0.686, 1.040),
    'bench-press-dumbbells':             StrengthStandard(0.095, 0.183, 0.305, 0.461, 0.641),
    'bicep-curl-dumbbells':              StrengthStandard(0.058, 0.116, 0.200, 0.306, 0.494),
    'bicep-curl-barbell':                StrengthStandard(0.108, 0.213, 0.362, 0.550, 0.884),
    'leg-press-machine':                 StrengthStandard(0.5, 1.25, 2.0, 3.25, 4.5),
    'row-barbell':                       StrengthStandard(0.25, 0.4, 0.65, 0.9, 1.2),
    'incline-bench-press-barbell':       StrengthStandard(0.2, 0.4, 0.65, 1.00, 1.40),
    'lat-pulldown-cables':               StrengthStandard(0.3, 0.45, 0.70, 0.95, 1.30),
    'leg-extension-machine':             StrengthStandard(0.25, 0.50, 1.00, 1.25, 2.00),
    'romanian-deadlift-barbell':         StrengthStandard(0.50, 0.75, 1.00, 1.50, 1.75),
    'incline-bench-press-dumbbells':     StrengthStandard(0.1, 0.2, 0.30, 0.45, 0.60),
    'shoulder-press-dumbbells':          StrengthStandard(0.10, 0.15, 0.25, 0.35, 0.50),
    'front-squat-barbell':               StrengthStandard(0.50, 0.75, 1.0, 1.25, 1.50),
    'hip-thrust-barbell':                StrengthStandard(0.50, 1.00, 1.5, 2.25, 3.00),
    'lateral-raise-dumbbells':           StrengthStandard(0.05, 0.10, 0.15, 0.20, 0.30),
    'row-cables':                        StrengthStandard(0.30, 0.50, 0.75, 1.00, 1.35),
    'hack-squat-machine':                StrengthStandard(0.25, 0.75, 1.50, 2.25, 3.25),
    'preacher-curl-dumbbells':           StrengthStandard(0.10, 0.20, 0.40, 0.60, 0.85),
    'overhead-press-machine':            StrengthStandard(0.10, 0.25, 0.50, 0.85, 1.20),
    'tricep-pushdown-cables':            StrengthStandard(0.15, 0.25, 0.50, 0.75, 1.05),
    'hammer-curl-dumbbells':             StrengthStandard(0.05, 0.15, 0.20, 0.30, 0.40),
    'bicep-curl-cables':                 StrengthStandard(0.10, 0.20, 0.40, 0.70, 1.00),
    'row-dumbbells':                     StrengthStandard(0.10, 0.20, 0.35, 0.50, 0.65),
    'seated-row-machine':                StrengthStandard(0.30, 0.50, 0.75, 1.00, 1.35),
    'leg-curl-machine':                  StrengthStandard(0.25, 0.45, 0.75, 1.05, 1.45),
    'calf-raise-machine':                StrengthStandard(0.25, 0.75, 1.25, 2.25, 3.25),
    'chest-fly-cables':                  StrengthStandard(0.05, 0.15, 0.30, 0.55, 0.80),
    'flyes-dumbbells':                   StrengthStandard(0.05, 0.10, 0.20, 0.30, 0.45),
    'sumo-deadlift-barbell':             StrengthStandard(0.75, 1.00, 1.50, 2.00, 2.50),
    'bench-press-machine':               StrengthStandard(0.15, 0.30, 0.55, 0.90, 1.25),
    'bench-press-smith-machine':         StrengthStandard(0.25, 0.50, 0.75, 1.25, 1.50),
    'squat-smith-machine':               StrengthStandard(0.25, 0.75, 1.00, 1.50, 2.25),
    'tricep-extension-dumbbells':        StrengthStandard(0.05, 0.20, 0.35, 0.60, 0.85),
    'walking-lunge-dumbbells':           StrengthStandard(0.10, 0.20, 0.30, 0.45, 0.65),
    'lunges-barbell':                    StrengthStandard(0.25, 0.50, 0.75, 1.25, 1.50),
    'romanian-deadlift-dumbbells':       StrengthStandard(0.15, 0.25, 0.40, 0.60, 0.80),
    'goblet-squat-dumbbells':            StrengthStandard(0.15, 0.25, 0.40, 0.60, 0.85),
    'goblet-squat-kettlebell':           StrengthStandard(0.15, 0.25, 0.40, 0.60, 0.85),
    'bulgarian-split-squat-dumbbells':   StrengthStandard(0.15, 0.30, 0.55, 0.85, 1.25),
    'rear-delt-fly-dumbbells':           StrengthStandard(0.05, 0.10, 0.15, 0.25, 0.40),
    'rear-delt-fly-cables':              StrengthStandard(0.05, 0.10, 0.15, 0.25, 0.40),
    'arnold-press-dumbbells':            StrengthStandard(0.10, 0.15, 0.20, 0.30, 0.35),
    'lateral-raise-cables':              StrengthStandard(0.05, 0.10, 0.15, 0.25, 0.35),
    'skull-crushers-dumbbells':          StrengthStandard(0.10, 0.20, 0.35, 0.55, 0.75),
    'overhead-tricep-extension-cables':  StrengthStandard(0.05, 0.20, 0.35, 0.60, 0.85),
    'crossover-cables':                  StrengthStandard(0.05, 0.15, 0.30, 0.55, 0.80),
    'chest-fly-machine':                 StrengthStandard(0.10, 0.25, 0.50, 0.80, 1.15),
    'hip-thrust-machine':                StrengthStandard(0.50, 1.00, 1.50, 2.25, 3.00),
}

# Strength typically peaks in the 20s-30s: (upper age bound, bracket, factor)
AGE_ADJUSTMENT_FACTORS: List[Tuple[float, str, float]] = [
    (25, '18-25', 1.0),
    (35, '26-35', 1.0),
    (45, '36-45', 0.95),
    (55, '46-55', 0.90),
    (65, '56-65', 0.85),
    (math.inf, '65+', 0.80),
]

MAIN_LIFTS = frozenset({
    'squat-barbell',
    'bench-press-barbell',
    'deadlift-barbell',
    'overhead-press-barbell',
})


@dataclass(frozen=True)
class Tier:
    name: str
    threshold: int


# Ordered by threshold; a percentile belongs to the last tier whose threshold it reaches
TIERS: Tuple[Tier, ...] = (
    Tier('E', 0),
    Tier('D', 6),
    Tier('C', 23),
    Tier('B', 47),
    Tier('A', 70),
    Tier('S', 85),
)

# Same scheme with +/- modifiers inside each letter
GRADED_TIERS: Tuple[Tier, ...] = (
    Tier('E-', 0),
    Tier('E', 1),
    Tier('E+', 3),
    Tier('D-', 6),
    Tier('D', 11),
    Tier('D+', 17),
    Tier('C-', 23),
    Tier('C', 31),
    Tier('C+', 39),
    Tier('B-', 47),
    Tier('B', 55),
    Tier('B+', 63),
    Tier('A-', 70),
    Tier('A', 75),
    Tier('A+', 80),
    Tier('S-', 85),
    Tier('S', 90),
    Tier('S+', 95),
    Tier('S++', 99),
)


@dataclass(frozen=True)
class TierGap:
    """Distance to the next tier; tier_name is None once the top tier is reached"""
    tier_name: Optional[str]
    points_needed: int

    @property
    def max_tier_reached(self) -> bool:
        return self.tier_name is None


def estimate_one_rep_max(weight: float, reps: int) -> float:
    """
    Estimate a one-rep max with the Epley formula: weight * (1 + reps / 30).

    A single rep returns the weight unchanged. The linear estimate is a
    deliberate simplification; it is what PR detection and best-set
    selection compare on.
    """
    if reps == 1:
        return weight
    return weight * (1 + reps / 30)


def calculate_1rm(weight: float, reps: int, formula: str = 'epley') -> float:
    """
    Calculate estimated 1RM using various formulas.

    Args:
        weight: Weight lifted
        reps: Number of reps
        formula: Which formula to use ('epley', 'brzycki', 'lombardi', 'oconner', 'mayhew', 'average')

    Returns:
        Estimated 1RM
    """
    if reps == 1:
        return weight
    if reps < 1 or weight <= 0:
        return 0

    formulas = {
        'epley': estimate_one_rep_max(weight, reps),
        'brzycki': weight * (36 / (37 - reps)) if reps < 37 else weight * 2,
        'lombardi': weight * (reps ** 0.10),
        'oconner': weight * (1 + reps / 40),
        'mayhew': weight * (100 / (52.2 + 41.9 * np.exp(-0.055 * reps)))
    }

    if formula == 'average':
        return float(np.mean(list(formulas.values())))

    return float(formulas.get(formula, formulas['epley']))


def get_standard(gender: Union[Gender, str], exercise_key: str) -> Optional[StrengthStandard]:
    """Look up the standards row for a gender and exercise, None if there is none"""
    table = MALE_STANDARDS if Gender(gender) == Gender.MALE else FEMALE_STANDARDS
    return table.get(exercise_key)


def get_age_category(age: float) -> Tuple[str, float]:
    """Return (bracket label, adjustment factor) for an age"""
    for upper, label, factor in AGE_ADJUSTMENT_FACTORS:
        if age <= upper:
            return label, factor
    return AGE_ADJUSTMENT_FACTORS[-1][1], AGE_ADJUSTMENT_FACTORS[-1][2]


def percentile(one_rep_max: float,
               bodyweight: float,
               gender: Union[Gender, str],
               exercise_key: str,
               age: Optional[float] = None) -> float:
    """
    Rank a 1RM against the population standards.

    The lift/bodyweight ratio (divided by an age factor when age is given)
    is interpolated linearly between the multipliers of the bracketing
    standards. Exercises without a standards row, and non-positive lifts or
    bodyweights, rank at 0.

    Returns:
        Percentile in [0, 99]
    """
    if bodyweight <= 0 or one_rep_max <= 0:
        return 0.0

    standard = get_standard(gender, exercise_key)
    if standard is None:
        return 0.0

    ratio = one_rep_max / bodyweight
    if age:
        _, factor = get_age_category(age)
        ratio = ratio / factor

    ratios = (0.0,) + standard.multipliers
    segments = zip(zip(ratios, ratios[1:]), zip(PERCENTILE_KNOTS, PERCENTILE_KNOTS[1:]))
    for (low_ratio, high_ratio), (low_pct, high_pct) in segments:
        if ratio <= high_ratio:
            span = high_ratio - low_ratio
            progress = (ratio - low_ratio) / span if span > 0 else 1.0
            return low_pct + progress * (high_pct - low_pct)

    top = standard.superior
    overshoot = (ratio - top) / (top * 0.2)
    return min(PERCENTILE_CAP, PERCENTILE_KNOTS[-1] + overshoot * (PERCENTILE_CAP - PERCENTILE_KNOTS[-1]))


def _lookup(tiers: Tuple[Tier, ...], value: float) -> Tier:
    index = bisect_right([t.threshold for t in tiers], value) - 1
    return tiers[max(index, 0)]


def tier_from_percentile(value: float) -> str:
    """Letter tier (E lowest ... S highest) for a percentile"""
    return _lookup(TIERS, value).name


def graded_tier_from_percentile(value: float) -> str:
    """Tier with +/- modifier (E- ... S++) for a percentile"""
    return _lookup(GRADED_TIERS, value).name


def next_tier_gap(value: float, tiers: Tuple[Tier, ...] = TIERS) -> TierGap:
    """Find the next tier above a percentile and how many points it takes to get there"""
    for tier in tiers:
        if tier.threshold > value:
            return TierGap(tier_name=tier.name, points_needed=tier.threshold - math.floor(value))
    return TierGap(tier_name=None, points_needed=0)


def lift_category(exercise_id: str) -> LiftCategory:
    return LiftCategory.MAIN if exercise_id in MAIN_LIFTS else LiftCategory.SECONDARY
