import math
from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from services.strength_predictor import (
    MODEL_REGISTRY,
    PREDICTION_MODELS,
    StrengthPredictor,
    asymptotic_regression,
    exponential_smoothing,
    get_models,
    linear_trend,
    predict,
    predict_all,
    predict_target_date,
)

SERIES = [200.0, 210.0, 215.0, 225.0]


class TestAsymptoticRegression:
    def test_empty_and_single(self):
        assert asymptotic_regression([], 30) == 0
        assert asymptotic_regression([185.0], 90) == 185.0

    def test_two_points_extrapolate_linearly(self):
        # (220 - 200) / 2 per week, 4 weeks ahead
        assert asymptotic_regression([200.0, 220.0], 28) == pytest.approx(260.0)

    def test_two_points_never_drop(self):
        assert asymptotic_regression([220.0, 200.0], 90) == 200.0

    def test_closes_gap_to_ceiling(self):
        ceiling = 225 * 1.15
        rate = 25 / 28
        expected = 225 + (ceiling - 225) * (1 - math.exp(-rate * 90 / 30))
        assert asymptotic_regression(SERIES, 90) == pytest.approx(expected)
        assert asymptotic_regression(SERIES, 10000) <= ceiling + 1e-9

    def test_declining_series_is_clamped(self):
        assert asymptotic_regression([250.0, 240.0, 230.0], 180) == 230.0


class TestExponentialSmoothing:
    def test_empty_and_single(self):
        assert exponential_smoothing([], 30) == 0
        assert exponential_smoothing([185.0], 90) == 185.0

    def test_matches_sequential_smoothing(self):
        smoothed = SERIES[0]
        for value in SERIES[1:]:
            smoothed = 0.3 * value + 0.7 * smoothed
        trend = (SERIES[-1] - smoothed) / len(SERIES)
        expected = smoothed + trend * 90 / 7

        assert exponential_smoothing(SERIES, 90) == pytest.approx(expected)

    def test_never_below_last(self):
        for horizon in (1, 30, 90, 180, 365):
            assert exponential_smoothing(SERIES, horizon) >= SERIES[-1]


def test_ensemble_is_mean_of_models():
    expected = (asymptotic_regression(SERIES, 90) + exponential_smoothing(SERIES, 90)) / 2
    assert predict(SERIES, 90) == pytest.approx(expected)


def test_ensemble_accepts_extra_models():
    models = PREDICTION_MODELS + [MODEL_REGISTRY['linear-trend']]
    values = [m.predict(SERIES, 30) for m in models]
    assert predict(SERIES, 30, models) == pytest.approx(sum(values) / 3)


def test_ensemble_requires_a_model():
    with pytest.raises(ValueError):
        predict(SERIES, 30, [])


def test_linear_trend_on_weekly_series():
    # Perfect line: +10 lbs per week
    assert linear_trend([200.0, 210.0, 220.0], 14) == pytest.approx(240.0)


def test_linear_trend_uses_timestamps():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    index = pd.DatetimeIndex([start, start + timedelta(days=1), start + timedelta(days=2)])
    series = pd.Series([200.0, 201.0, 202.0], index=index)
    assert linear_trend(series, 10) == pytest.approx(212.0)


def test_get_models():
    assert get_models() == PREDICTION_MODELS
    assert get_models(['linear-trend'])[0].name == 'Linear Trend'
    with pytest.raises(KeyError):
        get_models(['crystal-ball'])


def test_predict_all_horizons():
    result = predict_all(SERIES)
    assert set(result['ensemble']) == {30, 90, 180, 365}
    assert set(result['models']) == {'Asymptotic Regression', 'Exponential Smoothing'}
    assert result['ensemble'][30] <= result['ensemble'][365]


class TestTargetDate:
    def test_already_achieved(self):
        assert predict_target_date(SERIES, 220)['status'] == 'already_achieved'

    def test_achievable(self):
        result = predict_target_date(SERIES, 235)
        assert result['status'] == 'achievable'
        days = result['days_from_now']
        assert predict(SERIES, days) >= 235
        assert predict(SERIES, days - 1) < 235

    def test_flat_series_is_uncertain(self):
        assert predict_target_date([200.0, 200.0, 200.0], 300)['status'] == 'uncertain'

    def test_empty(self):
        assert predict_target_date([], 100)['status'] == 'uncertain'

    def test_long_term_rate_uses_timestamps(self):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        index = pd.DatetimeIndex([start + timedelta(days=i) for i in range(3)])
        series = pd.Series([200.0, 201.0, 202.0], index=index)

        result = predict_target_date(series, 1000)

        # +1 lb per day, not per week
        assert result['status'] == 'long_term'
        assert result['estimated_days'] == 798


def test_predictor_on_history_frame():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    df = pd.DataFrame({
        'recorded_at': [start + timedelta(days=7 * i) for i in range(4)],
        'weight': [180.0, 185.0, 190.0, 195.0],
        'reps': [5, 5, 5, 5],
        'estimated_1rm': SERIES,
    })

    forecast = StrengthPredictor().forecast(df)

    assert forecast['data_points'] == 4
    assert forecast['current_1rm'] == 225.0
    assert forecast['ensemble'][90] == round(predict(SERIES, 90), 1)

    target = StrengthPredictor().target_date(df, 235)
    assert target['status'] == 'achievable'
    assert 'predicted_date' in target
