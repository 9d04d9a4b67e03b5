"""
Strength Prediction Service
Forecasts future one-rep-max strength for an exercise

CONCEPTS DEMONSTRATED:
1. Time Series Analysis - each exercise's 1RM estimates as an ordered series
2. Multiple Models - independent forecasters behind one interface
3. Ensembles - averaging the models instead of trusting a single one
4. Diminishing Returns - projections that slow down near a ceiling

Every model takes the chronologically ordered 1RM estimates and a horizon
in days and returns a projected 1RM. No model ever predicts below the
last known value.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

from config import ASYMPTOTIC_HEADROOM, PREDICTION_HORIZONS, SMOOTHING_ALPHA

Series = Union[Sequence[float], pd.Series]

# Spacing assumed between entries of a series without timestamps
DAYS_PER_ENTRY = 7
MAX_TARGET_DAYS = 365


@dataclass(frozen=True)
class PredictionModel:
    """A named forecaster: predict(series, horizon_days) -> projected 1RM"""
    name: str
    description: str
    predict: Callable[[Series, int], float]


def _values(series: Series) -> np.ndarray:
    if isinstance(series, pd.Series):
        return series.to_numpy(dtype=float)
    return np.asarray(list(series), dtype=float)


# =============================================================================
# MODELS
# =============================================================================

def asymptotic_regression(series: Series, horizon_days: int) -> float:
    """
    Progress that slows as it approaches a ceiling.

    The ceiling is a fixed headroom over the best value seen so far
    (ASYMPTOTIC_HEADROOM); it is a tunable assumption, not a fitted one.
    Short series fall back to linear extrapolation.
    """
    values = _values(series)
    n = len(values)
    if n == 0:
        return 0.0

    first, last = values[0], values[-1]
    if n == 1:
        return float(last)

    if n < 3:
        growth_rate = (last - first) / n
        return float(max(last, last + growth_rate * horizon_days / 7))

    ceiling = values.max() * ASYMPTOTIC_HEADROOM
    # Weekly growth rate over the whole series
    rate = (last - first) / (n * 7)
    predicted = last + (ceiling - last) * (1 - np.exp(-rate * horizon_days / 30))
    return float(max(last, predicted))


def exponential_smoothing(series: Series, horizon_days: int) -> float:
    """
    Weight recent sessions more heavily and extend the recent trend.

    smoothed is the simple exponential smoothing of the series started from
    its first value (pandas ewm with adjust=False).
    """
    values = _values(series)
    n = len(values)
    if n == 0:
        return 0.0
    if n == 1:
        return float(values[0])

    smoothed = pd.Series(values).ewm(alpha=SMOOTHING_ALPHA, adjust=False).mean().iloc[-1]
    last = values[-1]
    trend = (last - smoothed) / n
    return float(max(last, smoothed + trend * horizon_days / 7))


def linear_trend(series: Series, horizon_days: int) -> float:
    """
    Least-squares line through the series.

    A series indexed by timestamps is fitted against days since the first
    entry; a plain sequence assumes one entry per week.
    """
    values = _values(series)
    n = len(values)
    if n == 0:
        return 0.0
    last = values[-1]
    if n == 1:
        return float(last)

    if isinstance(series, pd.Series) and isinstance(series.index, pd.DatetimeIndex):
        days = (series.index - series.index[0]) / pd.Timedelta(days=1)
        x = np.asarray(days, dtype=float)
    else:
        x = np.arange(n, dtype=float) * DAYS_PER_ENTRY

    model = LinearRegression()
    model.fit(x.reshape(-1, 1), values)
    predicted = model.predict(np.array([[x[-1] + horizon_days]]))[0]
    return float(max(last, predicted))


PREDICTION_MODELS: List[PredictionModel] = [
    PredictionModel(
        name='Asymptotic Regression',
        description='Accounts for diminishing returns as you approach genetic potential',
        predict=asymptotic_regression,
    ),
    PredictionModel(
        name='Exponential Smoothing',
        description='Weighted recent performance with trend analysis',
        predict=exponential_smoothing,
    ),
]

LINEAR_TREND_MODEL = PredictionModel(
    name='Linear Trend',
    description='Straight-line fit over days since the first record',
    predict=linear_trend,
)

MODEL_REGISTRY: Dict[str, PredictionModel] = {
    'asymptotic': PREDICTION_MODELS[0],
    'smoothing': PREDICTION_MODELS[1],
    'linear-trend': LINEAR_TREND_MODEL,
}


def get_models(names: Optional[Sequence[str]] = None) -> List[PredictionModel]:
    """
    Resolve model names against the registry; None means the default ensemble.

    Raises:
        KeyError: unknown model name
    """
    if names is None:
        return list(PREDICTION_MODELS)
    return [MODEL_REGISTRY[name] for name in names]


# =============================================================================
# ENSEMBLE
# =============================================================================

def predict(series: Series, horizon_days: int, models: Optional[List[PredictionModel]] = None) -> float:
    """
    Ensemble forecast: the arithmetic mean of every model's prediction.

    Args:
        series: Chronological 1RM estimates for one exercise
        horizon_days: How far ahead to project
        models: Models to average (defaults to PREDICTION_MODELS)

    Returns:
        Projected 1RM
    """
    models = PREDICTION_MODELS if models is None else models
    if not models:
        raise ValueError("At least one prediction model is required")
    return float(np.mean([model.predict(series, horizon_days) for model in models]))


def predict_all(series: Series,
                horizons: Optional[List[int]] = None,
                models: Optional[List[PredictionModel]] = None) -> Dict:
    """
    Every model and the ensemble at every horizon.

    Returns:
        {'models': {name: {days: value}}, 'ensemble': {days: value}}
    """
    horizons = PREDICTION_HORIZONS if horizons is None else horizons
    models = PREDICTION_MODELS if models is None else models

    per_model = {
        model.name: {days: round(model.predict(series, days), 1) for days in horizons}
        for model in models
    }
    ensemble = {days: round(predict(series, days, models), 1) for days in horizons}
    return {'models': per_model, 'ensemble': ensemble}


def predict_target_date(series: Series,
                        target_weight: float,
                        models: Optional[List[PredictionModel]] = None) -> Dict:
    """
    Predict when you'll reach a target 1RM.

    Args:
        series: Chronological 1RM estimates, optionally indexed by timestamp
        target_weight: The goal 1RM

    Returns:
        Dictionary with a status and, when reachable, the day count
    """
    values = _values(series)
    if len(values) == 0:
        return {
            'status': 'uncertain',
            'message': 'Not enough data to predict this target'
        }

    current = float(values[-1])
    if target_weight <= current:
        return {
            'status': 'already_achieved',
            'message': f'You can already lift {target_weight} lbs (current 1RM: {round(current, 1)})'
        }

    for days in range(1, MAX_TARGET_DAYS + 1):
        if predict(series, days, models) >= target_weight:
            result = {
                'status': 'achievable',
                'target_weight': target_weight,
                'days_from_now': days,
                'current_1rm': round(current, 1)
            }
            if isinstance(series, pd.Series) and isinstance(series.index, pd.DatetimeIndex):
                result['predicted_date'] = (series.index[-1] + timedelta(days=days)).strftime('%Y-%m-%d')
            return result

    # Calculate rate of progress
    if len(values) >= 2:
        span_days = (len(values) - 1) * DAYS_PER_ENTRY
        if isinstance(series, pd.Series) and isinstance(series.index, pd.DatetimeIndex):
            elapsed = (series.index[-1] - series.index[0]) / pd.Timedelta(days=1)
            if elapsed > 0:
                span_days = elapsed
        rate_per_day = (current - values[0]) / span_days
        if rate_per_day > 0:
            days_needed = (target_weight - current) / rate_per_day
            return {
                'status': 'long_term',
                'target_weight': target_weight,
                'estimated_days': int(days_needed),
                'message': f'At current rate, this could take ~{int(days_needed)} days'
            }

    return {
        'status': 'uncertain',
        'message': 'Not enough data to predict this target'
    }


class StrengthPredictor:
    """
    Forecasts for one exercise's history.

    Wraps the module-level models around a DataFrame of historical lifts
    (as produced by ProgressTracker.lift_history_frame).
    """

    def __init__(self, models: Optional[List[PredictionModel]] = None):
        self.models = PREDICTION_MODELS if models is None else models

    @staticmethod
    def series_from_history(df: pd.DataFrame) -> pd.Series:
        """1RM estimates indexed by the time they were recorded"""
        if df.empty:
            return pd.Series(dtype=float)
        df = df.sort_values('recorded_at')
        return pd.Series(
            df['estimated_1rm'].to_numpy(dtype=float),
            index=pd.DatetimeIndex(pd.to_datetime(df['recorded_at'], utc=True)),
        )

    def forecast(self, df: pd.DataFrame, horizons: Optional[List[int]] = None) -> Dict:
        series = self.series_from_history(df)
        result = predict_all(series, horizons, self.models)
        result['data_points'] = len(series)
        result['current_1rm'] = round(float(series.iloc[-1]), 1) if len(series) else None
        return result

    def target_date(self, df: pd.DataFrame, target_weight: float) -> Dict:
        return predict_target_date(self.series_from_history(df), target_weight, self.models)

