import pytest

from services.models import Gender, LiftCategory
from services.strength_standards import (
    FEMALE_STANDARDS,
    GRADED_TIERS,
    MALE_STANDARDS,
    PERCENTILE_CAP,
    calculate_1rm,
    estimate_one_rep_max,
    get_age_category,
    get_standard,
    graded_tier_from_percentile,
    lift_category,
    next_tier_gap,
    percentile,
    tier_from_percentile,
)


@pytest.mark.parametrize("weight,reps", [(135, 8), (225, 5), (100, 2), (315, 12), (0, 10)])
def test_epley_estimate(weight, reps):
    assert estimate_one_rep_max(weight, reps) == pytest.approx(weight * (1 + reps / 30))


def test_single_rep_is_the_weight():
    assert estimate_one_rep_max(405, 1) == 405


def test_calculator_formulas():
    assert calculate_1rm(225, 5, 'epley') == pytest.approx(262.5)
    assert calculate_1rm(225, 5, 'brzycki') == pytest.approx(225 * 36 / 32)
    assert calculate_1rm(225, 1, 'mayhew') == 225
    assert calculate_1rm(225, 0) == 0
    assert calculate_1rm(225, 5, 'unknown') == pytest.approx(262.5)

    average = calculate_1rm(225, 5, 'average')
    singles = [calculate_1rm(225, 5, f) for f in ('epley', 'brzycki', 'lombardi', 'oconner', 'mayhew')]
    assert average == pytest.approx(sum(singles) / len(singles))


def test_standards_tables_cover_both_genders():
    assert set(MALE_STANDARDS) == set(FEMALE_STANDARDS)
    assert get_standard(Gender.MALE, 'squat-barbell').advanced == 1.5
    assert get_standard('female', 'squat-barbell').advanced == 1.25
    assert get_standard(Gender.MALE, 'underwater-basket-weaving') is None


class TestPercentile:
    def test_exact_multiplier_hits_its_percentile(self):
        # 1.5x bodyweight is the advanced (50th) squat standard for men
        assert percentile(300, 200, Gender.MALE, 'squat-barbell') == pytest.approx(50)

    def test_interpolates_between_multipliers(self):
        # Halfway between beginner (0.75) and intermediate (1.25)
        assert percentile(200, 200, Gender.MALE, 'squat-barbell') == pytest.approx(17.5)

    def test_below_beginner_interpolates_from_zero(self):
        assert percentile(75, 200, Gender.MALE, 'squat-barbell') == pytest.approx(5)

    def test_caps_above_superior(self):
        assert percentile(2000, 100, Gender.MALE, 'squat-barbell') == PERCENTILE_CAP

    def test_unknown_exercise_ranks_zero(self):
        assert percentile(300, 200, Gender.MALE, 'underwater-basket-weaving') == 0

    @pytest.mark.parametrize("lift,bodyweight", [(0, 200), (300, 0), (-5, 200)])
    def test_non_positive_inputs_rank_zero(self, lift, bodyweight):
        assert percentile(lift, bodyweight, Gender.MALE, 'squat-barbell') == 0

    def test_gender_changes_the_standard(self):
        male = percentile(250, 200, Gender.MALE, 'squat-barbell')
        female = percentile(250, 200, Gender.FEMALE, 'squat-barbell')
        assert female > male

    def test_age_adjustment_raises_older_lifters(self):
        # 1.35x at age 50 is treated like 1.5x (factor 0.90)
        assert percentile(270, 200, Gender.MALE, 'squat-barbell', age=50) == pytest.approx(50)
        assert percentile(270, 200, Gender.MALE, 'squat-barbell', age=30) < 50

    def test_stays_in_range(self):
        for lift in range(0, 1000, 25):
            value = percentile(lift, 180, Gender.MALE, 'deadlift-barbell')
            assert 0 <= value <= PERCENTILE_CAP


@pytest.mark.parametrize("age,label,factor", [
    (16, '18-25', 1.0),
    (25, '18-25', 1.0),
    (26, '26-35', 1.0),
    (40, '36-45', 0.95),
    (50, '46-55', 0.90),
    (60, '56-65', 0.85),
    (70, '65+', 0.80),
])
def test_age_categories(age, label, factor):
    assert get_age_category(age) == (label, factor)


class TestTiers:
    @pytest.mark.parametrize("value,expected", [
        (0, 'E'), (5.999, 'E'),
        (6, 'D'), (6.001, 'D'), (22.999, 'D'),
        (23, 'C'), (46.999, 'C'),
        (47, 'B'), (69.999, 'B'),
        (70, 'A'), (84.999, 'A'),
        (85, 'S'), (99, 'S'), (100, 'S'),
    ])
    def test_boundaries(self, value, expected):
        assert tier_from_percentile(value) == expected

    def test_graded_tiers(self):
        assert graded_tier_from_percentile(0) == 'E-'
        assert graded_tier_from_percentile(50) == 'B-'
        assert graded_tier_from_percentile(99) == 'S++'
        names = [t.name for t in GRADED_TIERS]
        assert len(names) == len(set(names)) == 19

    def test_next_tier_gap(self):
        gap = next_tier_gap(40.7)
        assert gap.tier_name == 'B'
        assert gap.points_needed == 7

    def test_next_tier_gap_at_threshold_looks_past_it(self):
        gap = next_tier_gap(47)
        assert gap.tier_name == 'A'
        assert gap.points_needed == 23

    def test_top_tier_has_no_next(self):
        gap = next_tier_gap(90)
        assert gap.max_tier_reached
        assert gap.tier_name is None

    def test_graded_gap(self):
        gap = next_tier_gap(96, GRADED_TIERS)
        assert gap.tier_name == 'S++'
        assert gap.points_needed == 3


def test_lift_category():
    assert lift_category('squat-barbell') == LiftCategory.MAIN
    assert lift_category('deadlift-barbell') == LiftCategory.MAIN
    assert lift_category('bicep-curl-dumbbells') == LiftCategory.SECONDARY
